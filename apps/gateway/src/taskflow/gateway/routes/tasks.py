"""任务路由

POST /v1/workspaces/{workspace_id}/tasks: 创建任务（Idempotency-Key 可选）
POST /v1/workspaces/{workspace_id}/tasks/{task_id}/assign: 指派负责人（If-Match-Version）
POST /v1/workspaces/{workspace_id}/tasks/{task_id}/transition: 状态流转（If-Match-Version）
GET  /v1/workspaces/{workspace_id}/tasks/{task_id}: 任务详情 + 事件时间线
GET  /v1/workspaces/{workspace_id}/tasks: 任务列表，支持 state / assignee_id / cursor 筛选
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from taskflow.core import LifecycleEngine
from taskflow.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TITLE_MAX_LENGTH
from taskflow.core.models import (
    Event,
    MutationResult,
    Task,
    TaskFilters,
    TaskPriority,
    TaskState,
)

from ..deps import get_engine, get_tenant_id

router = APIRouter(prefix="/v1/workspaces/{workspace_id}/tasks")


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="任务标题")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")


class AssignTaskRequest(BaseModel):
    """指派请求体"""

    assignee_id: str = Field(min_length=1, description="负责人 ID")


class TransitionTaskRequest(BaseModel):
    """流转请求体"""

    to_state: TaskState = Field(description="目标状态")


class EventView(BaseModel):
    """时间线中的事件"""

    event_id: str
    task_id: str
    task_seq: int
    event_type: str
    payload: dict
    created_at: str

    @classmethod
    def from_event(cls, event: Event) -> "EventView":
        return cls(
            event_id=event.event_id,
            task_id=event.task_id,
            task_seq=event.task_seq,
            event_type=event.type.value,
            payload=event.payload,
            created_at=event.created_at.isoformat(),
        )


class TaskView(BaseModel):
    """任务视图"""

    task_id: str
    tenant_id: str
    workspace_id: str
    title: str
    priority: str
    state: str
    assignee_id: str | None
    version: int
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskView":
        return cls(
            task_id=task.task_id,
            tenant_id=task.tenant_id,
            workspace_id=task.workspace_id,
            title=task.title,
            priority=task.priority.value,
            state=task.state.value,
            assignee_id=task.assignee_id,
            version=task.version,
            created_at=task.created_at.isoformat(),
            updated_at=task.updated_at.isoformat(),
        )


class TaskDetailResponse(TaskView):
    """任务详情响应"""

    timeline: list[EventView]


class TaskListResponse(BaseModel):
    """任务列表响应

    next_cursor 为本页最后一条的 created_at，传回 cursor 参数获取下一页。
    """

    tasks: list[TaskView]
    next_cursor: str | None = None


@router.post("", response_model=MutationResult, status_code=201)
async def create_task(
    workspace_id: str,
    body: CreateTaskRequest,
    tenant_id: str = Depends(get_tenant_id),
    idempotency_key: str | None = Header(default=None, description="幂等键"),
    engine: LifecycleEngine = Depends(get_engine),
):
    """创建任务

    - 新任务返回 201 Created
    - Idempotency-Key 命中返回 200 OK 与首次响应
    """
    result, created = await engine.create(
        tenant_id=tenant_id,
        workspace_id=workspace_id,
        title=body.title,
        priority=body.priority,
        idempotency_key=idempotency_key,
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=result.model_dump(mode="json"),
    )


@router.post("/{task_id}/assign", response_model=MutationResult)
async def assign_task(
    workspace_id: str,
    task_id: str,
    body: AssignTaskRequest,
    tenant_id: str = Depends(get_tenant_id),
    x_role: str = Header(description="调用方角色"),
    if_match_version: int = Header(ge=1, description="期望的当前 version"),
    engine: LifecycleEngine = Depends(get_engine),
):
    """指派负责人（仅 manager）"""
    return await engine.assign(
        tenant_id=tenant_id,
        workspace_id=workspace_id,
        task_id=task_id,
        role=x_role,
        assignee_id=body.assignee_id,
        expected_version=if_match_version,
    )


@router.post("/{task_id}/transition", response_model=MutationResult)
async def transition_task(
    workspace_id: str,
    task_id: str,
    body: TransitionTaskRequest,
    tenant_id: str = Depends(get_tenant_id),
    x_role: str = Header(description="调用方角色"),
    x_user_id: str | None = Header(default=None, description="调用方身份"),
    if_match_version: int = Header(ge=1, description="期望的当前 version"),
    engine: LifecycleEngine = Depends(get_engine),
):
    """状态流转"""
    return await engine.transition(
        tenant_id=tenant_id,
        workspace_id=workspace_id,
        task_id=task_id,
        role=x_role,
        actor_id=x_user_id,
        to_state=body.to_state,
        expected_version=if_match_version,
    )


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task_detail(
    workspace_id: str,
    task_id: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: LifecycleEngine = Depends(get_engine),
):
    """查询任务详情，包含最近事件（新到旧）"""
    detail = await engine.get(tenant_id, workspace_id, task_id)
    return TaskDetailResponse(
        **TaskView.from_task(detail.task).model_dump(),
        timeline=[EventView.from_event(e) for e in detail.timeline],
    )


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    workspace_id: str,
    tenant_id: str = Depends(get_tenant_id),
    state: TaskState | None = Query(default=None, description="按状态筛选"),
    assignee_id: str | None = Query(default=None, description="按负责人筛选"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: datetime | None = Query(default=None, description="created_at 边界"),
    engine: LifecycleEngine = Depends(get_engine),
):
    """查询任务列表，按 created_at 倒序"""
    tasks = await engine.list_tasks(
        tenant_id,
        workspace_id,
        TaskFilters(state=state, assignee_id=assignee_id, limit=limit, cursor=cursor),
    )
    next_cursor = None
    if len(tasks) == limit:
        next_cursor = tasks[-1].created_at.isoformat()
    return TaskListResponse(
        tasks=[TaskView.from_task(t) for t in tasks],
        next_cursor=next_cursor,
    )
