"""原子事务封装 -- Task 变更 + Outbox 事件 + 幂等记录

每个原子单元使用独立连接执行 BEGIN IMMEDIATE ... COMMIT，
三张表的写入要么全部提交，要么全部回滚。
条件写由 UPDATE ... WHERE version = ? 保证，不存在读写之间的丢失更新窗口。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import (
    IdempotencyConflictError,
    InvalidStateError,
    StoreBusyError,
    TaskNotFoundError,
    VersionMismatchError,
)
from ..models.enums import TERMINAL_STATES, EventType, TaskState
from ..models.event import Event
from ..models.payloads import (
    TaskAssignedPayload,
    TaskCreatedPayload,
    TaskStateChangedPayload,
)
from ..models.task import MutationResult, Task
from .event_store import SqliteEventStore
from .idempotency_store import SqliteIdempotencyStore
from .sqlite_init import open_connection
from .task_store import SqliteTaskStore

log = structlog.get_logger()


class Transaction:
    """一个原子单元内共享同一连接的 Store 组"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.event_store = SqliteEventStore(conn)
        self.idempotency_store = SqliteIdempotencyStore(conn)


@asynccontextmanager
async def atomic_unit(
    db_path: str,
    busy_timeout_ms: int = 5000,
) -> AsyncIterator[Transaction]:
    """打开一个原子单元

    正常退出时 COMMIT；任何异常都会 ROLLBACK 并原样抛出。
    BEGIN IMMEDIATE 或 COMMIT 在 busy_timeout 内拿不到写锁时抛出 StoreBusyError。

    Args:
        db_path: SQLite 数据库文件路径
        busy_timeout_ms: 等待写锁的上限
    """
    conn = await open_connection(db_path, busy_timeout_ms, autocommit=True)
    try:
        try:
            await conn.execute("BEGIN IMMEDIATE")
        except aiosqlite.OperationalError as exc:
            if _is_lock_contention(exc):
                await log.awarning("write_lock_timeout", busy_timeout_ms=busy_timeout_ms)
                raise StoreBusyError(busy_timeout_ms) from exc
            raise

        try:
            yield Transaction(conn)
        except BaseException:
            await conn.execute("ROLLBACK")
            raise

        try:
            await conn.execute("COMMIT")
        except aiosqlite.OperationalError as exc:
            if conn.in_transaction:
                await conn.execute("ROLLBACK")
            if _is_lock_contention(exc):
                await log.awarning("commit_lock_timeout", busy_timeout_ms=busy_timeout_ms)
                raise StoreBusyError(busy_timeout_ms) from exc
            raise
    finally:
        await conn.close()


def _is_lock_contention(exc: aiosqlite.OperationalError) -> bool:
    """是否为 SQLITE_BUSY / SQLITE_LOCKED（写锁争用）"""
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def _new_event(
    task_id: str,
    task_seq: int,
    event_type: EventType,
    payload: dict,
    ts: datetime,
) -> Event:
    return Event(
        event_id=str(ULID()),
        task_id=task_id,
        task_seq=task_seq,
        type=event_type,
        payload=payload,
        created_at=ts,
    )


async def create_task_if_absent(
    tx: Transaction,
    task: Task,
    idempotency_key: str | None = None,
) -> tuple[MutationResult, bool]:
    """创建任务 + TaskCreated 事件 + 幂等记录（同一事务内）

    Args:
        tx: 当前原子单元
        task: 待创建的任务（version 必须为 1）
        idempotency_key: 可选幂等键

    Returns:
        (result, created) -- created=False 表示幂等命中，未产生任何写入

    Raises:
        IdempotencyConflictError: 幂等记录写入时 key 已存在
    """
    if idempotency_key:
        cached = await tx.idempotency_store.lookup(idempotency_key)
        if cached is not None:
            return MutationResult.model_validate(cached), False

    await tx.task_store.create_task(task)

    event = _new_event(
        task.task_id,
        task.version,
        EventType.TASK_CREATED,
        TaskCreatedPayload(**task.model_dump()).model_dump(mode="json"),
        task.created_at,
    )
    await tx.event_store.append_event(event)

    result = MutationResult(task_id=task.task_id, state=task.state, version=task.version)

    if idempotency_key:
        stored = await tx.idempotency_store.store(
            idempotency_key,
            task.task_id,
            result.model_dump(mode="json"),
            task.created_at,
        )
        if not stored:
            raise IdempotencyConflictError(idempotency_key)

    return result, True


async def _load_for_update(
    tx: Transaction,
    task_id: str,
    expected_version: int,
) -> Task:
    """读取待变更任务并执行不存在 / version / 终态三道检查"""
    task = await tx.task_store.get_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    if task.version != expected_version:
        raise VersionMismatchError(task_id, expected_version, task.version)
    if task.state in TERMINAL_STATES:
        raise InvalidStateError(task_id, task.state.value)
    return task


async def _apply_conditional_update(
    tx: Transaction,
    task: Task,
    expected_version: int,
    event_type: EventType,
    payload: dict,
    *,
    state: TaskState | None = None,
    assignee_id: str | None = None,
) -> MutationResult:
    """条件写 + 追加一条事件"""
    now = datetime.now(UTC)
    updated = await tx.task_store.update_if_version(
        task.task_id,
        expected_version,
        now,
        state=state,
        assignee_id=assignee_id,
    )
    if not updated:
        await log.awarning(
            "task_version_conflict",
            task_id=task.task_id,
            expected_version=expected_version,
        )
        raise VersionMismatchError(task.task_id, expected_version)

    next_version = expected_version + 1
    event = _new_event(task.task_id, next_version, event_type, payload, now)
    await tx.event_store.append_event(event)

    return MutationResult(
        task_id=task.task_id,
        state=state or task.state,
        version=next_version,
    )


async def conditional_assign(
    tx: Transaction,
    task_id: str,
    assignee_id: str,
    expected_version: int,
) -> MutationResult:
    """条件指派：设置 assignee，version + 1，追加 TaskAssigned 事件

    Raises:
        TaskNotFoundError: 任务不存在
        VersionMismatchError: version 与期望值不一致
        InvalidStateError: 任务已在终态
    """
    task = await _load_for_update(tx, task_id, expected_version)
    return await _apply_conditional_update(
        tx,
        task,
        expected_version,
        EventType.TASK_ASSIGNED,
        TaskAssignedPayload(assignee_id=assignee_id).model_dump(mode="json"),
        assignee_id=assignee_id,
    )


async def conditional_transition(
    tx: Transaction,
    task_id: str,
    to_state: TaskState,
    expected_version: int,
) -> MutationResult:
    """条件流转：修改 state，version + 1，追加 TaskStateChanged 事件

    授权判定必须已由调用方在同一事务内基于同一次读取完成；
    此处只负责终态保护和 version 保护。

    Raises:
        TaskNotFoundError: 任务不存在
        VersionMismatchError: version 与期望值不一致
        InvalidStateError: 任务已在终态
    """
    task = await _load_for_update(tx, task_id, expected_version)
    return await _apply_conditional_update(
        tx,
        task,
        expected_version,
        EventType.TASK_STATE_CHANGED,
        TaskStateChangedPayload(
            from_state=task.state,
            to_state=to_state,
        ).model_dump(mode="json"),
        state=to_state,
    )
