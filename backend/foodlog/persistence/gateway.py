"""
Persistence Gateway: fire-and-forget writes of confirmed entries.

submit() schedules the write as a background task and returns at once, so a
chat turn never waits on storage. A failed write is logged, the batch goes to
the fallback (local) ledger, and a notice is queued for the owner's next turn.
No inline retry.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set

from foodlog.errors import StorageError
from foodlog.events import EventSink, safe_emit
from foodlog.models.entries import FoodEntry, WeightEntry
from foodlog.persistence.ledger import JsonFileLedger, Ledger, SupabaseLedger, build_ledger

logger = logging.getLogger(__name__)

LOCAL_ONLY_NOTICE = "Heads up: I couldn't reach the server, so {what} has been recorded locally on this device."


class PersistenceGateway:
    def __init__(
        self,
        ledger: Ledger,
        fallback: Optional[Ledger] = None,
        events: Optional[EventSink] = None,
    ):
        self.ledger = ledger
        self.fallback = fallback
        self.events = events or EventSink()
        self._pending: Set[asyncio.Task] = set()
        self._notices: Dict[str, List[str]] = defaultdict(list)

    # --- scheduling ---
    def submit(self, entries: Sequence[FoodEntry]) -> Optional[asyncio.Task]:
        """Schedule one confirmed batch. Empty batches are ignored."""
        batch = list(entries)
        if not batch:
            return None
        return self._schedule(self._write_food(batch))

    def submit_weight(self, entry: WeightEntry) -> asyncio.Task:
        return self._schedule(self._write_weight(entry))

    def _schedule(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every outstanding write (tests, shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # --- notices ---
    def take_notices(self, owner_id: str) -> List[str]:
        return self._notices.pop(owner_id, [])

    # --- writes ---
    async def _write_food(self, batch: List[FoodEntry]) -> None:
        owner_id = batch[0].owner_id
        try:
            await asyncio.to_thread(self.ledger.save_all, batch)
        except StorageError as e:
            logger.warning("PERSIST_FAILED user_id=%s items=%d ledger=%s error=%s", owner_id, len(batch), self.ledger.name, e)
            safe_emit(self.events, "persist.failed", owner_id=owner_id, items=len(batch), ledger=self.ledger.name)
            await self._fallback_food(batch)
            what = batch[0].name if len(batch) == 1 else f"{len(batch)} items"
            self._notices[owner_id].append(LOCAL_ONLY_NOTICE.format(what=what))
            return
        logger.info("PERSIST_SAVED user_id=%s items=%d ledger=%s", owner_id, len(batch), self.ledger.name)
        safe_emit(self.events, "persist.saved", owner_id=owner_id, items=len(batch), ledger=self.ledger.name)

    async def _fallback_food(self, batch: List[FoodEntry]) -> None:
        if self.fallback is None:
            return
        try:
            await asyncio.to_thread(self.fallback.save_all, batch)
        except StorageError as e:
            logger.error("PERSIST_FALLBACK_FAILED items=%d error=%s", len(batch), e)

    async def _write_weight(self, entry: WeightEntry) -> None:
        try:
            await asyncio.to_thread(self.ledger.save_weight, entry)
        except StorageError as e:
            logger.warning("PERSIST_FAILED user_id=%s weight=%.1f error=%s", entry.owner_id, entry.weight_kg, e)
            safe_emit(self.events, "persist.failed", owner_id=entry.owner_id, items=1, ledger=self.ledger.name)
            if self.fallback is not None:
                try:
                    await asyncio.to_thread(self.fallback.save_weight, entry)
                except StorageError as fe:
                    logger.error("PERSIST_FALLBACK_FAILED weight error=%s", fe)
            self._notices[entry.owner_id].append(LOCAL_ONLY_NOTICE.format(what=f"your weight ({entry.weight_kg:g}kg)"))
            return
        safe_emit(self.events, "persist.saved", owner_id=entry.owner_id, items=1, ledger=self.ledger.name)

    async def recent_entries(self, owner_id: str, limit: int = 20) -> List[FoodEntry]:
        return await asyncio.to_thread(self.ledger.recent_entries, owner_id, limit)


def build_gateway(events: Optional[EventSink] = None) -> PersistenceGateway:
    """Configured ledger, with the local JSON file as fallback behind Supabase."""
    ledger = build_ledger()
    fallback = JsonFileLedger() if isinstance(ledger, SupabaseLedger) else None
    return PersistenceGateway(ledger, fallback=fallback, events=events)
