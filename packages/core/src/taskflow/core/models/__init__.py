"""Taskflow Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    EventType,
    Role,
    TaskPriority,
    TaskState,
    validate_transition,
)
from .event import Event
from .idempotency import IdempotencyRecord
from .payloads import (
    TaskAssignedPayload,
    TaskCreatedPayload,
    TaskStateChangedPayload,
)
from .task import MutationResult, Task, TaskDetail, TaskFilters

__all__ = [
    # 枚举
    "TaskState",
    "TaskPriority",
    "Role",
    "EventType",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Task
    "Task",
    "TaskDetail",
    "TaskFilters",
    "MutationResult",
    # Event
    "Event",
    # Idempotency
    "IdempotencyRecord",
    # Payloads
    "TaskCreatedPayload",
    "TaskAssignedPayload",
    "TaskStateChangedPayload",
]
