from typing import Optional

from fastapi import APIRouter, Depends

from ..errors import BadRequest
from ..schemas import (
    RatingIn,
    SessionCreateIn,
    SessionCreateOut,
    SessionOut,
    SessionResult,
    SessionWithGameOut,
    SuccessOut,
)
from ..services.play_sessions import SessionWorkflow
from .deps import get_current_user_id, get_workflow

router = APIRouter()


@router.post("", response_model=SessionCreateOut)
def create_session(
    payload: SessionCreateIn,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    if not payload.gameId:
        raise BadRequest("gameId is required")
    return SessionCreateOut(sessionId=workflow.create_session(user_id, payload.gameId))


@router.get("/{session_id}", response_model=SessionWithGameOut)
def get_session(
    session_id: str,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    return SessionWithGameOut.model_validate(workflow.get_session(user_id, session_id))


@router.patch("/{session_id}/start", response_model=SessionResult)
def start_session(
    session_id: str,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    return SessionResult(data=SessionOut.model_validate(workflow.start(user_id, session_id)))


@router.patch("/{session_id}/end", response_model=SessionResult)
def end_session(
    session_id: str,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    return SessionResult(data=SessionOut.model_validate(workflow.end(user_id, session_id)))


@router.patch("/{session_id}/rating", response_model=SessionResult)
def rate_session(
    session_id: str,
    payload: Optional[RatingIn] = None,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    rating = (payload or RatingIn()).model_dump()
    return SessionResult(data=SessionOut.model_validate(workflow.rate(user_id, session_id, rating)))


@router.delete("/{session_id}", response_model=SuccessOut)
def delete_session(
    session_id: str,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    workflow.delete(user_id, session_id)
    return SuccessOut()
