# habitlog/deps/live.py
from fastapi import Depends, HTTPException, Request, status

from habitlog.errors import GatewayError, NotAuthenticated, OwnerNotFound, MissingRecord, ConstraintViolation, TransientIO
from habitlog.models import User
from habitlog.deps.auth import get_current_user
from habitlog.sync.live import LiveSession, LiveSessions

def get_live_sessions(request: Request) -> LiveSessions:
    return request.app.state.live_sessions

async def get_live(
    current: User = Depends(get_current_user),
    sessions: LiveSessions = Depends(get_live_sessions),
) -> LiveSession:
    return sessions.get(current.id)

def http_error(exc: GatewayError) -> HTTPException:
    """Map a gateway failure to the response the client sees."""
    if isinstance(exc, NotAuthenticated):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)
    if isinstance(exc, (OwnerNotFound, MissingRecord)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, ConstraintViolation):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, TransientIO):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
