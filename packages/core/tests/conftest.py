"""packages/core 测试配置 -- 核心层 fixture"""

from datetime import UTC, datetime

import pytest
from taskflow.core.models import Task, TaskPriority, TaskState


@pytest.fixture
def make_task():
    """构造 Task 的工厂函数"""

    def _make(
        task_id: str = "01JTEST000000000000000001",
        tenant_id: str = "tenant_1",
        workspace_id: str = "ws_1",
        title: str = "Implement auth",
        priority: TaskPriority = TaskPriority.HIGH,
        state: TaskState = TaskState.NEW,
        assignee_id: str | None = None,
        version: int = 1,
        created_at: datetime | None = None,
    ) -> Task:
        ts = created_at or datetime.now(UTC)
        return Task(
            task_id=task_id,
            tenant_id=tenant_id,
            workspace_id=workspace_id,
            title=title,
            priority=priority,
            state=state,
            assignee_id=assignee_id,
            version=version,
            created_at=ts,
            updated_at=ts,
        )

    return _make
