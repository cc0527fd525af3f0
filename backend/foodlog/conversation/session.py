"""
ConversationSession: the single actor per conversation implementing handle_turn.

Flow per turn:
1. Under the lock: take a turn number, apply local shortcuts (cancel, yes,
   meal-type answer), resolve kind and meal type.
2. Outside the lock: search (if the classifier says so), compose, run the engine.
3. Under the lock again: drop the result if a newer turn started, otherwise
   sanitize, transition, record history and attach any storage notices.

Usage:
    session = ConversationSession("user-1", augmentor, engine, gateway)
    result = await session.handle_turn("chicken sandwich")
"""
import asyncio
import logging
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Deque, List, Optional, Tuple

from foodlog.classifier import (
    choose_search_mode,
    detect_meal_type,
    detect_request_kind,
    is_affirmative,
    is_cancel,
    is_meal_type_answer,
    is_question,
    should_search,
)
from foodlog.config import MAX_SESSIONS
from foodlog.errors import AugmentationError, ExtractionEngineError
from foodlog.evaluation.confidence import ConfidenceScorer
from foodlog.events import EventSink, safe_emit
from foodlog.extraction.structured import strip_payload
from foodlog.llm.client import ExtractionEngine
from foodlog.llm.composer import ChatTurn, PromptComposer
from foodlog.llm.prompts import DEFAULT_IMAGE_PROMPT
from foodlog.models.entries import FoodEntry, LogRequest, MealType, RequestKind, SearchContext
from foodlog.persistence.gateway import PersistenceGateway
from foodlog.sanitizer import sanitize
from foodlog.search.augmentor import SearchAugmentor
from foodlog.conversation import replies
from foodlog.conversation.state_machine import (
    AnswerKind,
    classify_answer,
    commit_food,
    commit_weight,
    on_answer,
    on_cancel,
    resolve_meal_type,
)
from foodlog.conversation.states import (
    AWAITING_CONFIRMATION,
    AwaitingFoodConfirmation,
    AwaitingMealType,
    AwaitingWeightConfirmation,
    ConversationState,
    Idle,
    state_name,
)

logger = logging.getLogger(__name__)

IMAGE_SEARCH_QUERY = "food calories nutrition"


@dataclass
class TurnResult:
    display_text: str
    confidence_percent: Optional[int] = None
    state: str = "idle"
    discarded: bool = False
    logged: List[FoodEntry] = field(default_factory=list)


@dataclass
class _Plan:
    turn: int
    request: LogRequest
    kind: RequestKind
    meal_type: Optional[MealType]
    needs_meal_type: bool


class ConversationSession:
    def __init__(
        self,
        owner_id: str,
        augmentor: SearchAugmentor,
        engine: ExtractionEngine,
        gateway: PersistenceGateway,
        composer: Optional[PromptComposer] = None,
        scorer: Optional[ConfidenceScorer] = None,
        events: Optional[EventSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.owner_id = owner_id
        self.augmentor = augmentor
        self.engine = engine
        self.gateway = gateway
        self.composer = composer or PromptComposer()
        self.scorer = scorer or ConfidenceScorer()
        self.events = events or EventSink()
        self.clock = clock or datetime.now
        self.state: ConversationState = Idle()
        # The composer never reads further back than its window
        self.history: Deque[ChatTurn] = deque(maxlen=self.composer.history_window)
        self.log_date: Optional[date] = None
        self._lock = asyncio.Lock()
        self._turn_seq = 0

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    async def handle_turn(
        self,
        text: str,
        image: Optional[bytes] = None,
        meal_type: Optional[MealType] = None,
        log_date: Optional[date] = None,
    ) -> TurnResult:
        text = (text or "").strip()
        async with self._lock:
            self._turn_seq += 1
            turn = self._turn_seq
            if log_date is not None:
                self.log_date = log_date

            if is_cancel(text) and not isinstance(self.state, Idle):
                return self._finish(self._cancel_locked(), self._take_notices())
            if is_affirmative(text) and isinstance(self.state, AWAITING_CONFIRMATION):
                return self._finish(self._confirm_locked(), self._take_notices())

            # Only an answer to the meal question re-runs the pending text;
            # anything else is a new request that supersedes it
            if isinstance(self.state, AwaitingMealType) and (not text or is_meal_type_answer(text)):
                chosen = meal_type or detect_meal_type(text)
                if chosen is not None:
                    pending = self.state
                    logger.info("MEAL_TYPE_RESOLVED user_id=%s meal=%s", self.owner_id, chosen.value)
                    text, image, meal_type = pending.original_text, image or pending.image, chosen

            plan = self._plan(turn, text, image, meal_type)

        search = await self._search(plan)
        messages = self.composer.compose(
            plan.request,
            kind=plan.kind,
            search=search,
            needs_meal_type=plan.needs_meal_type,
            history=list(self.history),
        )
        try:
            answer = await self.engine.run(messages)
        except ExtractionEngineError as e:
            logger.warning("TURN engine failed user_id=%s turn=%d: %s", self.owner_id, turn, e)
            async with self._lock:
                if self._is_stale(turn):
                    return self._discard(turn)
                self._transition(Idle())
                return self._finish(replies.ENGINE_APOLOGY, self._take_notices())

        async with self._lock:
            if self._is_stale(turn):
                return self._discard(turn)
            return self._apply_answer(plan, answer, search)

    async def confirm(self) -> TurnResult:
        """Explicit UI confirm action."""
        async with self._lock:
            self._turn_seq += 1
            notices = self._take_notices()
            if not isinstance(self.state, AWAITING_CONFIRMATION):
                return self._finish(replies.NOTHING_PENDING, notices)
            return self._finish(self._confirm_locked(), notices)

    async def cancel(self) -> TurnResult:
        """Explicit UI cancel action."""
        async with self._lock:
            self._turn_seq += 1
            notices = self._take_notices()
            return self._finish(self._cancel_locked(), notices)

    # ------------------------------------------------------------------
    # Planning and network stages
    # ------------------------------------------------------------------

    def _plan(
        self,
        turn: int,
        text: str,
        image: Optional[bytes],
        meal_hint: Optional[MealType],
    ) -> _Plan:
        kind = detect_request_kind(text)
        meal = resolve_meal_type(self.state, meal_hint, text)
        question = bool(text) and is_question(text)
        request = LogRequest(text=text, image=image, meal_type_hint=meal)
        needs_meal_type = (
            kind == RequestKind.FOOD and not question and meal is None and (bool(text) or request.has_image)
        )
        logger.info(
            "TURN_PLAN user_id=%s turn=%d kind=%s meal=%s needs_meal=%s image=%s",
            self.owner_id, turn, kind.value, meal.value if meal else None, needs_meal_type, request.has_image,
        )
        return _Plan(turn, request, kind, meal, needs_meal_type)

    async def _search(self, plan: _Plan) -> SearchContext:
        text = plan.request.text
        if plan.request.has_image and not text:
            text = IMAGE_SEARCH_QUERY
        if plan.needs_meal_type or not should_search(text):
            safe_emit(self.events, "search.skipped", owner_id=self.owner_id, turn=plan.turn)
            return SearchContext()
        try:
            return await self.augmentor.augment(text, choose_search_mode(text))
        except AugmentationError as e:
            logger.info("SEARCH_AUGMENT skipped user_id=%s: %s", self.owner_id, e)
            return SearchContext()

    # ------------------------------------------------------------------
    # State changes (call with the lock held)
    # ------------------------------------------------------------------

    def _apply_answer(self, plan: _Plan, answer: str, search: SearchContext) -> TurnResult:
        cleaned = sanitize(answer)
        display = strip_payload(cleaned)
        new_state = on_answer(
            self.state,
            cleaned,
            original_text=plan.request.text,
            image=plan.request.image,
            meal_type=plan.meal_type,
            search_domains=search.domains,
        )
        self._transition(new_state)
        self.history.append(ChatTurn("user", plan.request.text or DEFAULT_IMAGE_PROMPT))
        self.history.append(ChatTurn("assistant", display))

        percent = None
        if classify_answer(cleaned) == AnswerKind.LOGGABLE:
            percent = self.scorer.score(cleaned, search.domains).percent
        return self._finish(display, self._take_notices(), confidence_percent=percent)

    def _confirm_locked(self) -> Tuple[str, List[FoodEntry]]:
        now = self._timestamp()
        if isinstance(self.state, AwaitingWeightConfirmation):
            new_state, weight = commit_weight(self.state, self.owner_id, now)
            self.gateway.submit_weight(weight)
            safe_emit(self.events, "commit.scheduled", owner_id=self.owner_id, items=1, kind="weight")
            self._transition(new_state)
            return replies.weight_logged(weight.weight_kg), []

        pending: AwaitingFoodConfirmation = self.state
        new_state, commit = commit_food(pending, self.owner_id, now)
        self._transition(new_state)
        if not commit.entries:
            safe_emit(self.events, "extraction.miss", owner_id=self.owner_id)
            return replies.NOTHING_TO_LOG, []
        self.gateway.submit(commit.entries)
        safe_emit(self.events, "commit.scheduled", owner_id=self.owner_id, items=len(commit.entries), kind="food")
        return replies.entries_logged(commit.entries), commit.entries

    def _cancel_locked(self) -> str:
        if isinstance(self.state, Idle):
            return replies.NOTHING_PENDING
        self._transition(on_cancel(self.state))
        return replies.CANCELLED

    def _transition(self, new_state: ConversationState) -> None:
        old = state_name(self.state)
        new = state_name(new_state)
        self.state = new_state
        if old != new or isinstance(new_state, AwaitingFoodConfirmation):
            logger.info("STATE user_id=%s %s -> %s", self.owner_id, old, new)
            safe_emit(self.events, "state.transition", owner_id=self.owner_id, old=old, new=new)

    def _is_stale(self, turn: int) -> bool:
        return turn != self._turn_seq

    def _discard(self, turn: int) -> TurnResult:
        logger.info("TURN discarded user_id=%s turn=%d latest=%d", self.owner_id, turn, self._turn_seq)
        safe_emit(self.events, "turn.discarded", owner_id=self.owner_id, turn=turn, latest=self._turn_seq)
        return TurnResult(display_text="", state=state_name(self.state), discarded=True)

    def _take_notices(self) -> List[str]:
        # Taken only for a reply that is actually shown, never for a discarded turn
        return self.gateway.take_notices(self.owner_id)

    def _finish(self, outcome, notices: List[str], confidence_percent: Optional[int] = None) -> TurnResult:
        logged: List[FoodEntry] = []
        if isinstance(outcome, tuple):
            outcome, logged = outcome
        return TurnResult(
            display_text=replies.with_notices(notices, outcome),
            confidence_percent=confidence_percent,
            state=state_name(self.state),
            logged=list(logged),
        )

    def _timestamp(self) -> datetime:
        now = self.clock()
        if self.log_date is not None and self.log_date != now.date():
            return datetime.combine(self.log_date, now.time())
        return now


class SessionRegistry:
    """
    Owner id -> ConversationSession. Sessions share only the injected clients.
    Bounded: past max_sessions the least recently used conversation is dropped.
    """

    def __init__(self, factory: Callable[[str], ConversationSession], max_sessions: int = MAX_SESSIONS):
        self._factory = factory
        self.max_sessions = max(1, max_sessions)
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()

    def get(self, owner_id: str) -> ConversationSession:
        session = self._sessions.get(owner_id)
        if session is not None:
            self._sessions.move_to_end(owner_id)
            return session
        session = self._factory(owner_id)
        self._sessions[owner_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted, old = self._sessions.popitem(last=False)
            logger.info("SESSION_EVICTED user_id=%s state=%s", evicted, state_name(old.state))
        return session

    def __contains__(self, owner_id: str) -> bool:
        return owner_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
