"""Event Domain Model -- Outbox 事件

事件表 append-only，不允许更新或删除。
event_id 使用 ULID 格式。
task_seq 等于产生该事件的变更完成后的 Task.version，同一 task 内唯一。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import EventType


class Event(BaseModel):
    """Event 数据模型

    每次被接受的变更恰好产生一条事件。
    """

    event_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    task_seq: int = Field(ge=1, description="任务内序号，等于变更后的 version")
    type: EventType = Field(description="事件类型")
    payload: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
    created_at: datetime = Field(description="事件时间戳")
