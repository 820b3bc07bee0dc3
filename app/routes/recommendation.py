from typing import Union

from fastapi import APIRouter, Depends

from ..schemas import CatalogDone, GameOut
from ..services.play_sessions import SessionWorkflow
from .deps import get_current_user_id, get_workflow

router = APIRouter()


@router.get("/next", response_model=Union[GameOut, CatalogDone])
def next_recommendation(
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    game = workflow.next_recommendation(user_id)
    if game is None:
        return CatalogDone()
    return GameOut.model_validate(game)
