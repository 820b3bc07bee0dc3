from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..errors import BadRequest
from ..schemas import SuccessOut, SwipeIn, SwipeOut, SwipeResult, SwipeWithGameOut
from ..services.play_sessions import SessionWorkflow
from .deps import get_current_user_id, get_workflow

router = APIRouter()


@router.post("", response_model=SwipeResult)
def record_swipe(
    payload: SwipeIn,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    if not payload.gameId or not payload.decision:
        raise BadRequest("gameId and decision are required")
    rows = workflow.record_swipe(user_id, payload.gameId, payload.decision)
    return SwipeResult(data=[SwipeOut.model_validate(row) for row in rows])


@router.get("", response_model=List[SwipeWithGameOut])
def list_swipes(
    decision: Optional[str] = Query(None),
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    return [SwipeWithGameOut.model_validate(row) for row in workflow.list_swipes(user_id, decision)]


@router.delete("/{game_id}", response_model=SuccessOut)
def delete_swipe(
    game_id: int,
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    workflow.delete_swipe(user_id, game_id)
    return SuccessOut()
