"""枚举定义 -- Task 生命周期

包含 TaskState 状态机、TaskPriority、Role、EventType 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
角色叠加规则见 state_machine.py。
"""

from enum import StrEnum


class TaskState(StrEnum):
    """Task 状态机"""

    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"

    # 终态
    DONE = "DONE"
    CANCELLED = "CANCELLED"


# 合法状态流转（与角色无关的结构性边）
VALID_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.NEW: {TaskState.IN_PROGRESS, TaskState.CANCELLED},
    TaskState.IN_PROGRESS: {TaskState.DONE, TaskState.CANCELLED},
    # 终态不可再流转
    TaskState.DONE: set(),
    TaskState.CANCELLED: set(),
}

TERMINAL_STATES: set[TaskState] = {
    TaskState.DONE,
    TaskState.CANCELLED,
}


class TaskPriority(StrEnum):
    """任务优先级（仅展示用，不参与状态机判定）"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Role(StrEnum):
    """调用方角色（由上游鉴权层传入，核心层不做认证）"""

    MANAGER = "manager"
    AGENT = "agent"


class EventType(StrEnum):
    """Outbox 事件类型"""

    TASK_CREATED = "TaskCreated"
    TASK_ASSIGNED = "TaskAssigned"
    TASK_STATE_CHANGED = "TaskStateChanged"


def validate_transition(from_state: TaskState, to_state: TaskState) -> bool:
    """验证状态流转是否为合法的结构性边

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_state, set())
    return to_state in allowed
