"""Task Domain Model

tasks 表持有权威状态与乐观锁版本号 version。
所有变更必须与对应的 Outbox 事件在同一事务内提交。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TITLE_MAX_LENGTH
from .enums import TaskPriority, TaskState
from .event import Event


class Task(BaseModel):
    """Task 数据模型

    version 从 1 开始，每次成功变更严格 +1，作为乐观并发令牌。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    tenant_id: str = Field(min_length=1, description="租户标识")
    workspace_id: str = Field(min_length=1, description="工作区标识")
    title: str = Field(
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="任务标题，创建后不可修改",
    )
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    state: TaskState = Field(default=TaskState.NEW, description="当前状态")
    assignee_id: str | None = Field(default=None, description="负责人，仅 assign 可修改")
    version: int = Field(default=1, ge=1, description="乐观锁版本号")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="最后修改时间")


class MutationResult(BaseModel):
    """变更操作（create/assign/transition）的统一返回值"""

    task_id: str
    state: TaskState
    version: int


class TaskFilters(BaseModel):
    """任务列表筛选条件

    cursor 为 created_at 边界：仅返回严格早于 cursor 的任务。
    """

    state: TaskState | None = None
    assignee_id: str | None = None
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    cursor: datetime | None = None


class TaskDetail(BaseModel):
    """任务详情：Task + 最近事件时间线（新到旧）"""

    task: Task
    timeline: list[Event] = Field(default_factory=list)
