from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..db import Base, build_engine, build_session_factory
from ..errors import StoreUnavailable
from ..migrations import ensure_schema
from ..models import Game, PlaySession, Swipe, generate_id, utc_now

logger = logging.getLogger(__name__)

_GAME_UPSERT_COLUMNS = (
    "rawg_slug",
    "title",
    "cover_url",
    "summary",
    "description",
    "minutes_min",
    "minutes_max",
    "platforms",
    "genres",
    "coop_type",
    "rating",
    "metacritic",
    "released",
)


class Store:
    """Data access client for games, swipes and play sessions.

    Every operation opens its own short-lived ORM session, so one instance can
    be shared across request threads. Any driver or SQL failure surfaces as
    ``StoreUnavailable``; callers decide whether to fail or degrade.
    """

    def __init__(self, engine, session_factory=None) -> None:
        self.engine = engine
        self._session_factory = session_factory or build_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "Store":
        return cls(build_engine(database_url))

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        ensure_schema(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Store operation %s failed", action)
            raise StoreUnavailable() from exc
        finally:
            db.close()

    def _insert(self, model):
        if self.dialect == "postgresql":
            return postgresql.insert(model)
        if self.dialect == "sqlite":
            return sqlite.insert(model)
        return None

    # Games

    def list_games_excluding(self, excluded_ids: Iterable[int], limit: int = 1) -> List[Game]:
        excluded = list(excluded_ids)
        with self._session("list_games_excluding") as db:
            query = db.query(Game)
            if excluded:
                query = query.filter(Game.id.notin_(excluded))
            return query.order_by(Game.created_at.asc(), Game.id.asc()).limit(limit).all()

    def get_game(self, game_id: int) -> Optional[Game]:
        with self._session("get_game") as db:
            return db.query(Game).filter(Game.id == game_id).first()

    def add_game(self, **values: Any) -> Game:
        with self._session("add_game") as db:
            game = Game(**values)
            db.add(game)
            db.commit()
            db.refresh(game)
            return game

    def upsert_games(self, rows: List[Dict[str, Any]]) -> int:
        """Insert or update catalog rows keyed on ``rawg_id``."""
        if not rows:
            return 0
        now = utc_now()
        with self._session("upsert_games") as db:
            stmt = self._insert(Game)
            if stmt is None:
                for row in rows:
                    existing = db.query(Game).filter(Game.rawg_id == row["rawg_id"]).first()
                    if existing is None:
                        db.add(Game(**row))
                        continue
                    for key in _GAME_UPSERT_COLUMNS:
                        if key in row:
                            setattr(existing, key, row[key])
                db.commit()
                return len(rows)

            for row in rows:
                values = dict(row)
                values.setdefault("created_at", now)
                values["updated_at"] = now
                statement = stmt.values(**values)
                update_set = {
                    key: statement.excluded[key] for key in _GAME_UPSERT_COLUMNS if key in values
                }
                update_set["updated_at"] = statement.excluded.updated_at
                db.execute(
                    statement.on_conflict_do_update(index_elements=["rawg_id"], set_=update_set)
                )
            db.commit()
            return len(rows)

    # Swipes

    def list_swiped_game_ids(self, user_id: str) -> List[int]:
        with self._session("list_swiped_game_ids") as db:
            rows = db.query(Swipe.game_id).filter(Swipe.user_id == user_id).all()
            return [row.game_id for row in rows]

    def list_swipes(self, user_id: str, decision: Optional[str] = None) -> List[Swipe]:
        with self._session("list_swipes") as db:
            query = (
                db.query(Swipe)
                .options(joinedload(Swipe.game))
                .filter(Swipe.user_id == user_id)
            )
            if decision:
                query = query.filter(Swipe.decision == decision)
            return query.order_by(Swipe.created_at.desc()).all()

    def upsert_swipe(self, user_id: str, game_id: int, decision: str) -> List[Swipe]:
        now = utc_now()
        with self._session("upsert_swipe") as db:
            stmt = self._insert(Swipe)
            if stmt is None:
                existing = (
                    db.query(Swipe)
                    .filter(Swipe.user_id == user_id, Swipe.game_id == game_id)
                    .first()
                )
                if existing is None:
                    db.add(Swipe(user_id=user_id, game_id=game_id, decision=decision))
                else:
                    existing.decision = decision
            else:
                statement = stmt.values(
                    id=generate_id(),
                    user_id=user_id,
                    game_id=game_id,
                    decision=decision,
                    created_at=now,
                    updated_at=now,
                )
                db.execute(
                    statement.on_conflict_do_update(
                        index_elements=["user_id", "game_id"],
                        set_={
                            "decision": statement.excluded.decision,
                            "updated_at": statement.excluded.updated_at,
                        },
                    )
                )
            db.commit()
            return (
                db.query(Swipe)
                .filter(Swipe.user_id == user_id, Swipe.game_id == game_id)
                .all()
            )

    def delete_swipe(self, user_id: str, game_id: int) -> int:
        with self._session("delete_swipe") as db:
            deleted = (
                db.query(Swipe)
                .filter(Swipe.user_id == user_id, Swipe.game_id == game_id)
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted

    def list_interested_swipes_with_games(self, user_id: str) -> List[Swipe]:
        return self.list_swipes(user_id, decision="interested")

    # Sessions

    def insert_session(self, user_id: str, game_id: int, status: str) -> PlaySession:
        with self._session("insert_session") as db:
            row = PlaySession(user_id=user_id, game_id=game_id, status=status)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    def get_session_by_id(self, user_id: str, session_id: str) -> Optional[PlaySession]:
        with self._session("get_session_by_id") as db:
            return (
                db.query(PlaySession)
                .options(joinedload(PlaySession.game))
                .filter(PlaySession.id == session_id, PlaySession.user_id == user_id)
                .first()
            )

    def update_session(
        self, user_id: str, session_id: str, values: Dict[str, Any]
    ) -> Optional[PlaySession]:
        with self._session("update_session") as db:
            row = (
                db.query(PlaySession)
                .filter(PlaySession.id == session_id, PlaySession.user_id == user_id)
                .first()
            )
            if row is None:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return row

    def delete_session(self, user_id: str, session_id: str) -> bool:
        with self._session("delete_session") as db:
            deleted = (
                db.query(PlaySession)
                .filter(PlaySession.id == session_id, PlaySession.user_id == user_id)
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted > 0

    def get_latest_session_with_status(self, user_id: str, status: str) -> Optional[PlaySession]:
        with self._session("get_latest_session_with_status") as db:
            return (
                db.query(PlaySession)
                .options(joinedload(PlaySession.game))
                .filter(PlaySession.user_id == user_id, PlaySession.status == status)
                .order_by(PlaySession.started_at.desc())
                .first()
            )

    def list_started_sessions_with_games(self, user_id: str) -> List[PlaySession]:
        with self._session("list_started_sessions_with_games") as db:
            return (
                db.query(PlaySession)
                .options(joinedload(PlaySession.game))
                .filter(PlaySession.user_id == user_id, PlaySession.started_at.isnot(None))
                .order_by(PlaySession.started_at.desc())
                .all()
            )
