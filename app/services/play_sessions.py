from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..core.config import DASHBOARD_MAX_WORKERS
from ..errors import BadRequest, Internal, NotFound, StoreUnavailable
from ..models import Game, PlaySession, Swipe, utc_now
from .store import Store

logger = logging.getLogger(__name__)


class SwipeDecision(str, enum.Enum):
    IGNORE = "ignore"
    INTERESTED = "interested"


class SessionStatus(str, enum.Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    ENDED = "ended"


RATING_FIELDS = ("finished", "rating_fun", "rating_friction", "would_play_again")

# Transitions do not look at the current status: starting twice or ending a
# planned session is allowed. Guards belong in these functions if added.


def start_transition(now: datetime) -> Dict[str, Any]:
    return {"started_at": now, "status": SessionStatus.ACTIVE.value}


def end_transition(now: datetime) -> Dict[str, Any]:
    return {"ended_at": now, "status": SessionStatus.ENDED.value}


def rating_transition(rating: Dict[str, Any]) -> Dict[str, Any]:
    return {name: rating.get(name) for name in RATING_FIELDS}


def parse_decision(value: Any) -> SwipeDecision:
    try:
        return SwipeDecision(value)
    except ValueError:
        raise BadRequest('decision must be "ignore" or "interested"') from None


@dataclass
class Dashboard:
    active_session: Optional[PlaySession] = None
    interested_games: List[Game] = field(default_factory=list)
    past_sessions: List[PlaySession] = field(default_factory=list)


@contextmanager
def _store_failure(message: str) -> Iterator[None]:
    try:
        yield
    except StoreUnavailable as exc:
        raise Internal(message) from exc


class SessionWorkflow:
    def __init__(
        self,
        store: Store,
        clock: Callable[[], datetime] = utc_now,
        dashboard_workers: int = DASHBOARD_MAX_WORKERS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.dashboard_workers = dashboard_workers

    def next_recommendation(self, user_id: str) -> Optional[Game]:
        """Oldest catalog entry the user has not swiped on, or None when exhausted."""
        with _store_failure("Failed to fetch swipes"):
            swiped = self.store.list_swiped_game_ids(user_id)
        with _store_failure("Failed to fetch games"):
            games = self.store.list_games_excluding(swiped, limit=1)
        return games[0] if games else None

    def record_swipe(self, user_id: str, game_id: int, decision: Any) -> List[Swipe]:
        choice = parse_decision(decision)
        with _store_failure("Failed to save swipe"):
            return self.store.upsert_swipe(user_id, game_id, choice.value)

    def delete_swipe(self, user_id: str, game_id: int) -> None:
        with _store_failure("Failed to delete swipe"):
            self.store.delete_swipe(user_id, game_id)

    def list_swipes(self, user_id: str, decision: Any = None) -> List[Swipe]:
        choice = parse_decision(decision).value if decision is not None else None
        with _store_failure("Failed to fetch swipes"):
            return self.store.list_swipes(user_id, decision=choice)

    def create_session(self, user_id: str, game_id: int) -> str:
        # Not transactional: a failed insert leaves the interested swipe behind.
        try:
            self.store.upsert_swipe(user_id, game_id, SwipeDecision.INTERESTED.value)
        except StoreUnavailable:
            logger.warning("Could not mark game %s interested for new session", game_id)
        with _store_failure("Failed to create session"):
            row = self.store.insert_session(user_id, game_id, SessionStatus.PLANNED.value)
        return row.id

    def get_session(self, user_id: str, session_id: str) -> PlaySession:
        try:
            row = self.store.get_session_by_id(user_id, session_id)
        except StoreUnavailable as exc:
            raise NotFound("Session not found") from exc
        if row is None:
            raise NotFound("Session not found")
        return row

    def start(self, user_id: str, session_id: str) -> PlaySession:
        return self._apply(user_id, session_id, start_transition(self.clock()), "Failed to start session")

    def end(self, user_id: str, session_id: str) -> PlaySession:
        return self._apply(user_id, session_id, end_transition(self.clock()), "Failed to end session")

    def rate(self, user_id: str, session_id: str, rating: Dict[str, Any]) -> PlaySession:
        return self._apply(user_id, session_id, rating_transition(rating), "Failed to update rating")

    def delete(self, user_id: str, session_id: str) -> None:
        with _store_failure("Failed to delete session"):
            deleted = self.store.delete_session(user_id, session_id)
        if not deleted:
            raise NotFound("Session not found")

    def _apply(
        self, user_id: str, session_id: str, values: Dict[str, Any], failure: str
    ) -> PlaySession:
        with _store_failure(failure):
            row = self.store.update_session(user_id, session_id, values)
        if row is None:
            raise NotFound("Session not found")
        return row

    def get_dashboard(self, user_id: str) -> Dashboard:
        """Gather the dashboard parts concurrently; a failed part comes back empty."""
        with ThreadPoolExecutor(max_workers=self.dashboard_workers) as executor:
            active_future = executor.submit(
                self.store.get_latest_session_with_status, user_id, SessionStatus.ACTIVE.value
            )
            interested_future = executor.submit(
                self.store.list_interested_swipes_with_games, user_id
            )
            past_future = executor.submit(self.store.list_started_sessions_with_games, user_id)

            dashboard = Dashboard()
            try:
                dashboard.active_session = active_future.result()
            except StoreUnavailable:
                logger.error("Error fetching active session for dashboard")
            try:
                swipes = interested_future.result()
                dashboard.interested_games = [swipe.game for swipe in swipes if swipe.game is not None]
            except StoreUnavailable:
                logger.error("Error fetching interested games for dashboard")
            try:
                dashboard.past_sessions = past_future.result()
            except StoreUnavailable:
                logger.error("Error fetching past sessions for dashboard")
        return dashboard
