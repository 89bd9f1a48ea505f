from fastapi import APIRouter, Depends, HTTPException, Response, status
from habitlog.deps.live import get_live, http_error
from habitlog.errors import GatewayError, UnknownEntity
from habitlog.schemas.activity import ActivityBoard, TemplateRead, TemplateWrite, ToggleRead
from habitlog.sync.live import LiveSession

router = APIRouter(prefix="/activities", tags=["activities"])

async def _loaded(live: LiveSession) -> LiveSession:
    try:
        await live.activities.load()
    except GatewayError as e:
        raise http_error(e)
    return live

def _template_view(live: LiveSession, tpl) -> TemplateRead:
    return TemplateRead(
        id=tpl.id,
        name=tpl.name,
        description=tpl.description,
        icon=tpl.icon,
        completed=live.activities.is_completed(tpl.id),
    )

@router.get("", response_model=ActivityBoard)
async def board(live: LiveSession = Depends(get_live)):
    await _loaded(live)
    tracker = live.activities
    return ActivityBoard(
        date=tracker.date,
        daily_goal=tracker.daily_goal,
        templates=[_template_view(live, t) for t in tracker.templates],
        saving_ids=sorted(tracker.saving_ids),
    )

@router.post("/{template_id}/toggle", response_model=ToggleRead)
async def toggle(template_id: int, live: LiveSession = Depends(get_live)):
    await _loaded(live)
    try:
        completed = live.activities.toggle(template_id)
    except UnknownEntity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return ToggleRead(template_id=template_id, completed=completed)

@router.post("/templates", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(payload: TemplateWrite, live: LiveSession = Depends(get_live)):
    await _loaded(live)
    try:
        tpl = await live.activities.add_template(payload.name, payload.description, payload.icon)
    except GatewayError as e:
        raise http_error(e)
    return _template_view(live, tpl)

@router.put("/templates/{template_id}", response_model=TemplateRead)
async def update_template(template_id: int, payload: TemplateWrite, live: LiveSession = Depends(get_live)):
    await _loaded(live)
    try:
        tpl = await live.activities.update_template(
            template_id, name=payload.name, description=payload.description, icon=payload.icon
        )
    except UnknownEntity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    except GatewayError as e:
        raise http_error(e)
    return _template_view(live, tpl)

@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(template_id: int, live: LiveSession = Depends(get_live)):
    await _loaded(live)
    try:
        await live.activities.delete_template(template_id)
    except UnknownEntity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    except GatewayError as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
