from fastapi import APIRouter, Depends
from habitlog.aggregation import collect_dashboard_stats
from habitlog.deps.auth import get_current_user
from habitlog.deps.live import get_live_sessions, http_error
from habitlog.errors import GatewayError
from habitlog.models import User
from habitlog.schemas.dashboard import DashboardStatsRead
from habitlog.sync.live import LiveSessions

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("/stats", response_model=DashboardStatsRead)
async def stats(
    current: User = Depends(get_current_user),
    sessions: LiveSessions = Depends(get_live_sessions),
):
    try:
        result = await collect_dashboard_stats(sessions.gateway, current.id)
    except GatewayError as e:
        raise http_error(e)
    return DashboardStatsRead.model_validate(result, from_attributes=True)
