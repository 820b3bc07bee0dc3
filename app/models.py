import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Float,
    Integer,
    Boolean,
    ForeignKey,
    JSON,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rawg_id = Column(Integer, unique=True, index=True, nullable=True)
    rawg_slug = Column(String(200), nullable=True)
    title = Column(String(200), nullable=False)
    cover_url = Column(String(500), nullable=True)
    summary = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    minutes_min = Column(Integer, nullable=True)
    minutes_max = Column(Integer, nullable=True)
    platforms = Column(JSON, default=list)
    genres = Column(JSON, default=list)
    coop_type = Column(String(20), default="solo")
    rating = Column(Float, nullable=True)
    metacritic = Column(Integer, nullable=True)
    released = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    swipes = relationship("Swipe", back_populates="game", cascade="all, delete")
    sessions = relationship("PlaySession", back_populates="game", cascade="all, delete")


class Swipe(Base):
    __tablename__ = "swipes"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_swipe_user_game"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), index=True, nullable=False)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    decision = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    game = relationship("Game", back_populates="swipes")


class PlaySession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), index=True, nullable=False)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    status = Column(String(20), nullable=False, default="planned")
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    finished = Column(Boolean, nullable=True)
    rating_fun = Column(Integer, nullable=True)
    rating_friction = Column(Integer, nullable=True)
    would_play_again = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    game = relationship("Game", back_populates="sessions")
