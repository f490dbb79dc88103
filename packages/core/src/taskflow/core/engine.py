"""LifecycleEngine -- 任务生命周期编排

每个变更操作（create / assign / transition）都在一个原子单元内完成：
读取作用域内的任务行 -> 授权判定 -> 条件写 -> 追加事件 -> （create）缓存幂等响应。
授权判定所用的读取与条件写位于同一事务，不存在过期授权窗口。
"""

from datetime import UTC, datetime

import structlog
from ulid import ULID

from .config import DEFAULT_EVENTS_LIMIT, TIMELINE_LIMIT
from .exceptions import (
    IdempotencyConflictError,
    InvalidStateError,
    InvalidTransitionError,
    TaskNotFoundError,
    UnauthorizedError,
    VersionMismatchError,
)
from .models import (
    TERMINAL_STATES,
    Event,
    MutationResult,
    Role,
    Task,
    TaskDetail,
    TaskFilters,
    TaskPriority,
    TaskState,
)
from .state_machine import can_assign, decide
from .store import StoreGroup
from .store.transaction import (
    Transaction,
    conditional_assign,
    conditional_transition,
    create_task_if_absent,
)

log = structlog.get_logger()


class LifecycleEngine:
    """任务生命周期引擎

    Store 通过构造函数注入，不引用任何全局连接。
    """

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create(
        self,
        tenant_id: str,
        workspace_id: str,
        title: str,
        priority: TaskPriority = TaskPriority.MEDIUM,
        idempotency_key: str | None = None,
    ) -> tuple[MutationResult, bool]:
        """创建任务

        Returns:
            (result, created) -- created=False 表示幂等命中，返回首次缓存的响应
        """
        task_id = str(ULID())
        try:
            async with self._stores.transaction() as tx:
                # 写锁已持有：created_at 顺序与提交顺序一致
                now = datetime.now(UTC)
                task = Task(
                    task_id=task_id,
                    tenant_id=tenant_id,
                    workspace_id=workspace_id,
                    title=title,
                    priority=priority,
                    state=TaskState.NEW,
                    version=1,
                    created_at=now,
                    updated_at=now,
                )
                result, created = await create_task_if_absent(tx, task, idempotency_key)
        except IdempotencyConflictError:
            # 其他写入方先提交了同一幂等键：回查已缓存的响应
            cached = await self._stores.idempotency_store.lookup(idempotency_key)
            if cached is None:
                raise
            result, created = MutationResult.model_validate(cached), False

        if created:
            await log.ainfo(
                "task_created",
                task_id=result.task_id,
                tenant_id=tenant_id,
                workspace_id=workspace_id,
            )
        else:
            await log.ainfo(
                "idempotent_replay",
                task_id=result.task_id,
                idempotency_key=idempotency_key,
            )
        return result, created

    async def assign(
        self,
        tenant_id: str,
        workspace_id: str,
        task_id: str,
        role: Role | str,
        assignee_id: str,
        expected_version: int,
    ) -> MutationResult:
        """指派负责人（仅 manager，且任务处于 NEW / IN_PROGRESS）

        Raises:
            TaskNotFoundError / VersionMismatchError / InvalidStateError / UnauthorizedError
        """
        async with self._stores.transaction() as tx:
            task = await self._load_scoped(
                tx, tenant_id, workspace_id, task_id, expected_version
            )
            if not can_assign(task.state, role):
                raise UnauthorizedError(
                    f"Role {role} cannot assign task in state {task.state.value}"
                )
            result = await conditional_assign(tx, task_id, assignee_id, expected_version)

        await log.ainfo(
            "task_assigned",
            task_id=task_id,
            assignee_id=assignee_id,
            version=result.version,
        )
        return result

    async def transition(
        self,
        tenant_id: str,
        workspace_id: str,
        task_id: str,
        role: Role | str,
        actor_id: str | None,
        to_state: TaskState,
        expected_version: int,
    ) -> MutationResult:
        """状态流转

        Raises:
            TaskNotFoundError / VersionMismatchError / InvalidStateError / InvalidTransitionError
        """
        async with self._stores.transaction() as tx:
            task = await self._load_scoped(
                tx, tenant_id, workspace_id, task_id, expected_version
            )
            if not decide(task.state, to_state, role, task.assignee_id, actor_id):
                raise InvalidTransitionError(task.state.value, str(to_state), str(role))
            result = await conditional_transition(tx, task_id, to_state, expected_version)

        await log.ainfo(
            "task_transitioned",
            task_id=task_id,
            from_state=task.state.value,
            to_state=result.state.value,
            version=result.version,
        )
        return result

    async def get(self, tenant_id: str, workspace_id: str, task_id: str) -> TaskDetail:
        """查询任务详情 + 最近事件时间线（新到旧）"""
        task = await self._stores.task_store.get_task(task_id, tenant_id)
        if task is None or task.workspace_id != workspace_id:
            raise TaskNotFoundError(task_id)
        timeline = await self._stores.event_store.get_events_for_task(
            task_id,
            limit=TIMELINE_LIMIT,
            newest_first=True,
        )
        return TaskDetail(task=task, timeline=timeline)

    async def list_tasks(
        self,
        tenant_id: str,
        workspace_id: str,
        filters: TaskFilters | None = None,
    ) -> list[Task]:
        """查询工作区任务列表"""
        return await self._stores.task_store.list_tasks(workspace_id, tenant_id, filters)

    async def list_events(self, limit: int = DEFAULT_EVENTS_LIMIT) -> list[Event]:
        """查询最近的 Outbox 事件"""
        return await self._stores.event_store.list_recent(limit)

    @staticmethod
    async def _load_scoped(
        tx: Transaction,
        tenant_id: str,
        workspace_id: str,
        task_id: str,
        expected_version: int,
    ) -> Task:
        """在原子单元内读取任务，依次校验作用域、version、终态

        version 先于终态与授权检查：并发写入中落败的一方总是得到 VersionMismatchError。
        """
        task = await tx.task_store.get_task(task_id, tenant_id)
        if task is None or task.workspace_id != workspace_id:
            raise TaskNotFoundError(task_id)
        if task.version != expected_version:
            raise VersionMismatchError(task_id, expected_version, task.version)
        if task.state in TERMINAL_STATES:
            raise InvalidStateError(task_id, task.state.value)
        return task
