from fastapi import APIRouter, Depends
from habitlog.deps.live import get_live
from habitlog.schemas.notification import NotificationRead
from habitlog.sync.live import LiveSession

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("", response_model=list[NotificationRead])
async def drain(live: LiveSession = Depends(get_live)):
    """Each message is returned once."""
    return [NotificationRead.model_validate(n, from_attributes=True) for n in live.notifications.drain()]
