"""状态机判定单元测试

测试内容：
1. 结构性流转表
2. 角色叠加规则（manager 只能取消，agent 必须是负责人）
3. can_assign
"""

import pytest
from taskflow.core.models.enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    Role,
    TaskState,
    validate_transition,
)
from taskflow.core.state_machine import can_assign, decide


class TestTransitionTable:
    """结构性流转表"""

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (TaskState.NEW, TaskState.IN_PROGRESS),
            (TaskState.NEW, TaskState.CANCELLED),
            (TaskState.IN_PROGRESS, TaskState.DONE),
            (TaskState.IN_PROGRESS, TaskState.CANCELLED),
        ],
    )
    def test_valid_transition(self, from_state: TaskState, to_state: TaskState):
        assert validate_transition(from_state, to_state) is True

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (TaskState.NEW, TaskState.DONE),
            (TaskState.NEW, TaskState.NEW),
            (TaskState.IN_PROGRESS, TaskState.NEW),
            (TaskState.IN_PROGRESS, TaskState.IN_PROGRESS),
        ],
    )
    def test_invalid_transition(self, from_state: TaskState, to_state: TaskState):
        assert validate_transition(from_state, to_state) is False

    def test_terminal_states_have_empty_transitions(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == set()

    def test_every_state_is_in_table(self):
        for state in TaskState:
            assert state in VALID_TRANSITIONS, f"{state} 未在 VALID_TRANSITIONS 中定义"


class TestDecide:
    """decide() 角色叠加规则"""

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.AGENT, "auditor"])
    def test_new_to_done_rejected_for_every_role(self, role):
        """NEW -> DONE 对任何角色都被拒绝"""
        assert decide(TaskState.NEW, TaskState.DONE, role, "u1", "u1") is False

    @pytest.mark.parametrize("from_state", [TaskState.NEW, TaskState.IN_PROGRESS])
    def test_manager_can_cancel(self, from_state: TaskState):
        assert decide(from_state, TaskState.CANCELLED, Role.MANAGER, None, "boss") is True

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (TaskState.NEW, TaskState.IN_PROGRESS),
            (TaskState.IN_PROGRESS, TaskState.DONE),
        ],
    )
    def test_manager_cannot_drive_work(self, from_state: TaskState, to_state: TaskState):
        """manager 即使是负责人也不能推进工作"""
        assert decide(from_state, to_state, Role.MANAGER, "boss", "boss") is False

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (TaskState.NEW, TaskState.IN_PROGRESS),
            (TaskState.IN_PROGRESS, TaskState.DONE),
        ],
    )
    def test_assigned_agent_can_drive_work(self, from_state: TaskState, to_state: TaskState):
        assert decide(from_state, to_state, Role.AGENT, "user_123", "user_123") is True

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (TaskState.NEW, TaskState.IN_PROGRESS),
            (TaskState.IN_PROGRESS, TaskState.DONE),
        ],
    )
    def test_agent_not_assignee_rejected(self, from_state: TaskState, to_state: TaskState):
        assert decide(from_state, to_state, Role.AGENT, "user_123", "user_999") is False

    def test_agent_on_unassigned_task_rejected(self):
        assert decide(TaskState.NEW, TaskState.IN_PROGRESS, Role.AGENT, None, None) is False

    @pytest.mark.parametrize("from_state", [TaskState.NEW, TaskState.IN_PROGRESS])
    def test_agent_cannot_cancel(self, from_state: TaskState):
        assert decide(from_state, TaskState.CANCELLED, Role.AGENT, "u1", "u1") is False

    def test_unknown_role_rejected(self):
        assert decide(TaskState.NEW, TaskState.CANCELLED, "auditor", None, "x") is False

    def test_role_accepts_plain_strings(self):
        assert decide(TaskState.NEW, TaskState.CANCELLED, "manager", None, "x") is True

    @pytest.mark.parametrize("terminal", [TaskState.DONE, TaskState.CANCELLED])
    def test_terminal_states_reject_everything(self, terminal: TaskState):
        for target in TaskState:
            for role in Role:
                assert decide(terminal, target, role, "u1", "u1") is False


class TestCanAssign:
    """can_assign()"""

    @pytest.mark.parametrize("state", [TaskState.NEW, TaskState.IN_PROGRESS])
    def test_manager_on_active_task(self, state: TaskState):
        assert can_assign(state, Role.MANAGER) is True

    @pytest.mark.parametrize("state", [TaskState.DONE, TaskState.CANCELLED])
    def test_manager_on_terminal_task(self, state: TaskState):
        assert can_assign(state, Role.MANAGER) is False

    @pytest.mark.parametrize("state", list(TaskState))
    def test_agent_never_assigns(self, state: TaskState):
        assert can_assign(state, Role.AGENT) is False
