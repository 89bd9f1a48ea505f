from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from habitlog.deps.live import get_live, get_live_sessions, http_error
from habitlog.deps.auth import get_current_user
from habitlog.errors import GatewayError, SessionInactive, UnknownEntity
from habitlog.models import User
from habitlog.schemas.workout import ExerciseRead, PlanCreate, PlanRead, SessionRead, SetCreate, SetRead, SetUpdate
from habitlog.sync.live import LiveSession, LiveSessions

router = APIRouter(prefix="/workout", tags=["workout"])

def session_view(live: LiveSession) -> SessionRead:
    store = live.store
    saving = store.saving_ids
    return SessionRead(
        id=store.session.id,
        date=store.session.date,
        active=store.is_active,
        loading=store.is_loading,
        sets=[SetRead(**_set_fields(s), saving=s.id in saving) for s in store.session.sets],
        saving_ids=sorted(saving),
    )

def _set_fields(s) -> dict:
    return {
        "id": s.id,
        "exercise_id": s.exercise_id,
        "exercise_name": s.exercise_name,
        "group_id": s.group_id,
        "set_number": s.set_number,
        "weight": s.weight,
        "reps": s.reps,
    }

@router.get("/session", response_model=SessionRead)
async def get_session(live: LiveSession = Depends(get_live)):
    # first call hydrates from today's stored sets
    await live.store.load()
    return session_view(live)

@router.post("/session/start", response_model=SessionRead)
async def start_session(live: LiveSession = Depends(get_live)):
    await live.store.load()
    try:
        live.store.start()
    except SessionInactive as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return session_view(live)

@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    current: User = Depends(get_current_user),
    sessions: LiveSessions = Depends(get_live_sessions),
):
    sessions.close(current.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/sets", response_model=SetRead, status_code=status.HTTP_201_CREATED)
async def add_set(payload: SetCreate, live: LiveSession = Depends(get_live)):
    await live.store.load()
    try:
        new_set = live.store.add_set(payload.exercise_id, payload.group_id, exercise_name=payload.exercise_name)
    except SessionInactive:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No active workout")
    return SetRead(**_set_fields(new_set))

@router.patch("/sets/{set_id}", response_model=SetRead)
async def update_set(set_id: str, payload: SetUpdate, live: LiveSession = Depends(get_live)):
    try:
        updated = live.store.update_set(set_id, **payload.model_dump(exclude_unset=True))
    except UnknownEntity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Set not found")
    return SetRead(**_set_fields(updated), saving=updated.id in live.store.saving_ids)

@router.delete("/sets/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_set(set_id: str, live: LiveSession = Depends(get_live)):
    try:
        await live.store.remove_set(set_id)
    except UnknownEntity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Set not found")
    except GatewayError as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/exercises", response_model=list[ExerciseRead])
async def list_exercises(
    request: Request,
    group: str = Query(..., min_length=1, max_length=40),
    current: User = Depends(get_current_user),
):
    gateway = get_live_sessions(request).gateway
    try:
        return await gateway.list_exercises(current.id, group)
    except GatewayError as e:
        raise http_error(e)

@router.get("/plan", response_model=list[PlanRead])
async def list_plan(
    request: Request,
    group: str | None = Query(None, min_length=1, max_length=40),
    current: User = Depends(get_current_user),
):
    gateway = get_live_sessions(request).gateway
    try:
        return await gateway.list_plan(current.id, group)
    except GatewayError as e:
        raise http_error(e)

@router.post("/plan", response_model=PlanRead, status_code=status.HTTP_201_CREATED)
async def add_to_plan(
    payload: PlanCreate,
    request: Request,
    current: User = Depends(get_current_user),
):
    gateway = get_live_sessions(request).gateway
    try:
        return await gateway.add_to_plan(current.id, payload.exercise_id, payload.group_id)
    except GatewayError as e:
        raise http_error(e)

@router.delete("/plan/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_plan(
    plan_id: int,
    live: LiveSession = Depends(get_live),
    sessions: LiveSessions = Depends(get_live_sessions),
):
    try:
        entry = next((p for p in await sessions.gateway.list_plan(live.owner_id) if p.id == plan_id), None)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise plan not found")
        # today's sets for the exercise go with it
        await live.store.remove_exercise(entry)
    except GatewayError as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
