from fastapi import APIRouter, Depends

from ..schemas import DashboardOut, GameOut, SessionWithGameOut
from ..services.play_sessions import SessionWorkflow
from .deps import get_current_user_id, get_workflow

router = APIRouter()


@router.get("", response_model=DashboardOut)
def get_dashboard(
    workflow: SessionWorkflow = Depends(get_workflow),
    user_id: str = Depends(get_current_user_id),
):
    dashboard = workflow.get_dashboard(user_id)
    active = dashboard.active_session
    return DashboardOut(
        activeSession=SessionWithGameOut.model_validate(active) if active is not None else None,
        interestedGames=[GameOut.model_validate(game) for game in dashboard.interested_games],
        pastSessions=[SessionWithGameOut.model_validate(row) for row in dashboard.past_sessions],
    )
