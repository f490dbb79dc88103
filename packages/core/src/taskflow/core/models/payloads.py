"""Event Payload 子类型

TaskCreated 携带完整快照；TaskAssigned / TaskStateChanged 仅携带增量。
"""

from datetime import datetime

from pydantic import BaseModel

from .enums import TaskPriority, TaskState


class TaskCreatedPayload(BaseModel):
    """TaskCreated 事件 payload（完整 Task 快照）"""

    task_id: str
    tenant_id: str
    workspace_id: str
    title: str
    priority: TaskPriority
    state: TaskState
    assignee_id: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class TaskAssignedPayload(BaseModel):
    """TaskAssigned 事件 payload"""

    assignee_id: str


class TaskStateChangedPayload(BaseModel):
    """TaskStateChanged 事件 payload"""

    from_state: TaskState
    to_state: TaskState
