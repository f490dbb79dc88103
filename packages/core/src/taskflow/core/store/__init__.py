"""Taskflow Core Store -- SQLite 持久化实现

StoreGroup 持有共享的只读连接（get/list 快照读取），
并为每个变更请求打开独立连接的原子单元。
"""

from contextlib import AbstractAsyncContextManager
from pathlib import Path

import aiosqlite

from ..config import get_busy_timeout_ms
from .event_store import SqliteEventStore
from .idempotency_store import SqliteIdempotencyStore
from .sqlite_init import init_db, open_connection
from .task_store import SqliteTaskStore
from .transaction import (
    Transaction,
    atomic_unit,
    conditional_assign,
    conditional_transition,
    create_task_if_absent,
)


class StoreGroup:
    """Store 实例组 -- 读取共享同一个数据库连接，写入走 transaction()"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        db_path: str,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.conn = conn
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms
        self.task_store = SqliteTaskStore(conn)
        self.event_store = SqliteEventStore(conn)
        self.idempotency_store = SqliteIdempotencyStore(conn)

    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """打开一个原子单元（独立连接 + BEGIN IMMEDIATE）"""
        return atomic_unit(self.db_path, self.busy_timeout_ms)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(
    db_path: str,
    busy_timeout_ms: int | None = None,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        busy_timeout_ms: 写锁等待上限，默认读取配置

    Returns:
        StoreGroup 实例
    """
    if busy_timeout_ms is None:
        busy_timeout_ms = get_busy_timeout_ms()

    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await open_connection(db_path, busy_timeout_ms)
    await init_db(conn)

    return StoreGroup(conn=conn, db_path=db_path, busy_timeout_ms=busy_timeout_ms)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteEventStore",
    "SqliteIdempotencyStore",
    "Transaction",
    "atomic_unit",
    "init_db",
    "open_connection",
    "create_task_if_absent",
    "conditional_assign",
    "conditional_transition",
]
