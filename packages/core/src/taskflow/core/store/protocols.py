"""Store Protocol 接口定义

定义 TaskStore、EventStore、IdempotencyStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ..models.enums import EventType, TaskState
from ..models.event import Event
from ..models.task import Task, TaskFilters


@runtime_checkable
class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        ...

    async def get_task(self, task_id: str, tenant_id: str | None = None) -> Task | None:
        """根据 task_id 查询任务（可按租户隔离）"""
        ...

    async def list_tasks(
        self,
        workspace_id: str,
        tenant_id: str,
        filters: TaskFilters | None = None,
    ) -> list[Task]:
        """查询工作区任务列表，按 created_at 倒序"""
        ...

    async def update_if_version(
        self,
        task_id: str,
        expected_version: int,
        updated_at: datetime,
        *,
        state: TaskState | None = None,
        assignee_id: str | None = None,
    ) -> bool:
        """条件写：version 匹配时更新并 +1"""
        ...


@runtime_checkable
class EventStore(Protocol):
    """Event 存储接口

    事件表 append-only：只允许插入，不允许更新或删除。
    """

    async def append_event(self, event: Event) -> None:
        """追加事件（append-only）"""
        ...

    async def list_recent(self, limit: int) -> list[Event]:
        """查询最近事件，按 created_at 倒序"""
        ...

    async def get_events_for_task(
        self,
        task_id: str,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[Event]:
        """查询指定任务的事件时间线"""
        ...

    async def count_events(
        self,
        task_id: str,
        event_type: EventType | None = None,
    ) -> int:
        """统计指定任务的事件数"""
        ...


@runtime_checkable
class IdempotencyStore(Protocol):
    """幂等记录存储接口 -- 先写者胜出"""

    async def lookup(self, key: str) -> dict[str, Any] | None:
        """查询缓存的响应"""
        ...

    async def store(
        self,
        key: str,
        task_id: str,
        response: dict[str, Any],
        created_at: datetime | None = None,
    ) -> bool:
        """写入幂等记录，key 已存在时返回 False 且不覆盖"""
        ...
