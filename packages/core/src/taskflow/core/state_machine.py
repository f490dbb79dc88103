"""状态机判定 -- 结构性流转表 + 角色叠加规则

纯函数，无 I/O、无可变状态，可脱离存储独立测试。
"""

from .models.enums import Role, TaskState, validate_transition

# agent 可推进的边（不含取消）
AGENT_TRANSITIONS: set[tuple[TaskState, TaskState]] = {
    (TaskState.NEW, TaskState.IN_PROGRESS),
    (TaskState.IN_PROGRESS, TaskState.DONE),
}

# 允许 assign 的状态
ASSIGNABLE_STATES: set[TaskState] = {TaskState.NEW, TaskState.IN_PROGRESS}


def decide(
    current_state: TaskState,
    requested_state: TaskState,
    role: Role | str,
    assignee_id: str | None,
    actor_id: str | None,
) -> bool:
    """判定一次状态流转请求是否被授权

    规则：
    1. 流转表中不存在的边直接拒绝（与角色无关）
    2. manager 只能取消
    3. agent 必须是负责人，且只能 NEW -> IN_PROGRESS 或 IN_PROGRESS -> DONE
    4. 其他角色一律拒绝

    Args:
        current_state: 当前状态（必须来自与条件写同一事务内的读取）
        requested_state: 目标状态
        role: 调用方角色
        assignee_id: 任务当前负责人
        actor_id: 调用方身份

    Returns:
        True 如果允许
    """
    if not validate_transition(current_state, requested_state):
        return False

    if role == Role.MANAGER:
        return requested_state == TaskState.CANCELLED

    if role == Role.AGENT:
        if assignee_id is None or assignee_id != actor_id:
            return False
        return (current_state, requested_state) in AGENT_TRANSITIONS

    return False


def can_assign(state: TaskState, role: Role | str) -> bool:
    """仅 manager 可在 NEW / IN_PROGRESS 状态下指派负责人"""
    return role == Role.MANAGER and state in ASSIGNABLE_STATES
