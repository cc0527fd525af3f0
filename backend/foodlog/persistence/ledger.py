"""
Ledger: durable store for food/exercise and weight entries.

- SupabaseLedger: tables food_entries / weight_entries (set SUPABASE_URL and
  SUPABASE_SERVICE_ROLE_KEY).
- JsonFileLedger: data/food_entries.json under the repo root; used when
  Supabase is not configured and as the "recorded locally" fallback.
- InMemoryLedger: for tests and the CLI.

All methods are blocking; the Persistence Gateway runs them off the event loop.
Write failures raise StorageError.
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client, create_client

from foodlog.config import (
    get_food_entries_table,
    get_local_ledger_path,
    get_supabase_key,
    get_supabase_url,
    get_weight_entries_table,
)
from foodlog.errors import StorageError
from foodlog.models.entries import FoodEntry, WeightEntry

logger = logging.getLogger(__name__)

RECENT_LIMIT = 20


def distinct_recent(entries: Sequence[FoodEntry], limit: int = RECENT_LIMIT) -> List[FoodEntry]:
    """Newest first, one entry per food name (case-insensitive), food only."""
    seen = set()
    out: List[FoodEntry] = []
    for e in sorted(entries, key=lambda x: x.timestamp, reverse=True):
        key = e.name.strip().lower()
        if e.is_exercise or not key or key in seen:
            continue
        seen.add(key)
        out.append(e)
        if len(out) >= limit:
            break
    return out


class Ledger:
    name = "ledger"

    def save(self, entry: FoodEntry) -> None:
        raise NotImplementedError

    def save_all(self, entries: Sequence[FoodEntry]) -> None:
        """Write a confirmed batch. Implementations that can, write it atomically."""
        for entry in entries:
            self.save(entry)

    def save_weight(self, entry: WeightEntry) -> None:
        raise NotImplementedError

    def recent_entries(self, owner_id: str, limit: int = RECENT_LIMIT) -> List[FoodEntry]:
        raise NotImplementedError


class InMemoryLedger(Ledger):
    name = "memory"

    def __init__(self) -> None:
        self.entries: List[FoodEntry] = []
        self.weights: List[WeightEntry] = []
        self._lock = threading.Lock()

    def save(self, entry: FoodEntry) -> None:
        with self._lock:
            self.entries.append(entry)

    def save_all(self, entries: Sequence[FoodEntry]) -> None:
        with self._lock:
            self.entries.extend(entries)

    def save_weight(self, entry: WeightEntry) -> None:
        with self._lock:
            self.weights.append(entry)

    def recent_entries(self, owner_id: str, limit: int = RECENT_LIMIT) -> List[FoodEntry]:
        with self._lock:
            mine = [e for e in self.entries if e.owner_id == owner_id]
        return distinct_recent(mine, limit)


class JsonFileLedger(Ledger):
    name = "local"

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_local_ledger_path()
        self._lock = threading.Lock()

    def _load_all(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.path.exists():
            return {"food_entries": [], "weight_entries": []}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("LEDGER_LOCAL failed to load %s: %s", self.path, e)
            return {"food_entries": [], "weight_entries": []}
        data.setdefault("food_entries", [])
        data.setdefault("weight_entries", [])
        return data

    def _save_all(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise StorageError(f"could not write {self.path}: {e}") from e

    def save(self, entry: FoodEntry) -> None:
        self.save_all([entry])

    def save_all(self, entries: Sequence[FoodEntry]) -> None:
        with self._lock:
            data = self._load_all()
            data["food_entries"].extend(e.to_row() for e in entries)
            self._save_all(data)
        logger.info("LEDGER_LOCAL saved=%d path=%s", len(entries), self.path)

    def save_weight(self, entry: WeightEntry) -> None:
        with self._lock:
            data = self._load_all()
            data["weight_entries"].append(entry.to_row())
            self._save_all(data)
        logger.info("LEDGER_LOCAL weight saved user_id=%s", entry.owner_id)

    def recent_entries(self, owner_id: str, limit: int = RECENT_LIMIT) -> List[FoodEntry]:
        with self._lock:
            rows = self._load_all()["food_entries"]
        mine = [FoodEntry.from_row(r) for r in rows if r.get("user_id") == owner_id]
        return distinct_recent(mine, limit)


class SupabaseLedger(Ledger):
    name = "supabase"

    def __init__(
        self,
        client: Optional[Client] = None,
        url: Optional[str] = None,
        key: Optional[str] = None,
        food_table: Optional[str] = None,
        weight_table: Optional[str] = None,
    ):
        if client is None:
            url = url or get_supabase_url()
            key = key or get_supabase_key()
            if not url or not key:
                raise StorageError("Supabase credentials missing (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
            try:
                client = create_client(url, key)
            except Exception as e:
                raise StorageError(f"could not create Supabase client: {e}") from e
        self.client = client
        self.food_table = food_table or get_food_entries_table()
        self.weight_table = weight_table or get_weight_entries_table()

    def _insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        try:
            self.client.table(table).insert(rows).execute()
        except Exception as e:
            raise StorageError(f"insert into {table} failed: {e}") from e

    def save(self, entry: FoodEntry) -> None:
        self._insert(self.food_table, [entry.to_row()])

    def save_all(self, entries: Sequence[FoodEntry]) -> None:
        # One request: the batch lands completely or not at all
        if entries:
            self._insert(self.food_table, [e.to_row() for e in entries])
            logger.info("LEDGER_SUPABASE saved=%d table=%s", len(entries), self.food_table)

    def save_weight(self, entry: WeightEntry) -> None:
        self._insert(self.weight_table, [entry.to_row()])

    def recent_entries(self, owner_id: str, limit: int = RECENT_LIMIT) -> List[FoodEntry]:
        try:
            res = (
                self.client.table(self.food_table)
                .select("*")
                .eq("user_id", owner_id)
                .order("created_at", desc=True)
                .limit(limit * 3)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"select from {self.food_table} failed: {e}") from e
        rows = res.data or []
        return distinct_recent([FoodEntry.from_row(r) for r in rows], limit)


def build_ledger() -> Ledger:
    """Supabase when configured, otherwise the local JSON ledger."""
    if get_supabase_url() and get_supabase_key():
        try:
            return SupabaseLedger()
        except StorageError as e:
            logger.warning("LEDGER falling back to local file: %s", e)
    return JsonFileLedger()
