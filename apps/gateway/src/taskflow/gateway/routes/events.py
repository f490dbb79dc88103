"""Outbox 事件查询路由

GET /v1/events: 最近事件，按 created_at 倒序（外部检查用，不提供投递语义）。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from taskflow.core import LifecycleEngine
from taskflow.core.config import DEFAULT_EVENTS_LIMIT, MAX_EVENTS_LIMIT

from ..deps import get_engine
from .tasks import EventView

router = APIRouter()


class EventListResponse(BaseModel):
    """事件列表响应"""

    events: list[EventView]


@router.get("/v1/events", response_model=EventListResponse)
async def list_events(
    limit: int = Query(default=DEFAULT_EVENTS_LIMIT, ge=1, le=MAX_EVENTS_LIMIT),
    engine: LifecycleEngine = Depends(get_engine),
):
    events = await engine.list_events(limit)
    return EventListResponse(events=[EventView.from_event(e) for e in events])
