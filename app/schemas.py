from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field


class GameOut(BaseModel):
    id: int
    rawg_id: Optional[int] = None
    rawg_slug: Optional[str] = None
    title: str
    cover_url: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    minutes_min: Optional[int] = None
    minutes_max: Optional[int] = None
    platforms: Optional[List[str]] = None
    genres: Optional[List[str]] = None
    coop_type: Optional[str] = None
    rating: Optional[float] = None
    metacritic: Optional[int] = None
    released: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CatalogDone(BaseModel):
    done: bool = True


class SwipeIn(BaseModel):
    gameId: Optional[int] = None
    decision: Optional[str] = None


class SwipeOut(BaseModel):
    id: str
    user_id: str
    game_id: int
    decision: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SwipeWithGameOut(SwipeOut):
    games: Optional[GameOut] = Field(default=None, validation_alias=AliasChoices("game", "games"))


class SwipeResult(BaseModel):
    success: bool = True
    data: List[SwipeOut]


class SessionCreateIn(BaseModel):
    gameId: Optional[int] = None


class SessionCreateOut(BaseModel):
    sessionId: str


class SessionOut(BaseModel):
    id: str
    user_id: str
    game_id: int
    status: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    finished: Optional[bool] = None
    rating_fun: Optional[int] = None
    rating_friction: Optional[int] = None
    would_play_again: Optional[bool] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionWithGameOut(SessionOut):
    games: Optional[GameOut] = Field(default=None, validation_alias=AliasChoices("game", "games"))


class SessionResult(BaseModel):
    success: bool = True
    data: SessionOut


class RatingIn(BaseModel):
    finished: Optional[bool] = None
    rating_fun: Optional[int] = Field(default=None, ge=1, le=5)
    rating_friction: Optional[int] = Field(default=None, ge=1, le=5)
    would_play_again: Optional[bool] = None


class SuccessOut(BaseModel):
    success: bool = True


class DashboardOut(BaseModel):
    activeSession: Optional[SessionWithGameOut] = None
    interestedGames: List[GameOut] = []
    pastSessions: List[SessionWithGameOut] = []
