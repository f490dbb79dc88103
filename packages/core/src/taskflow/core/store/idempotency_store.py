"""IdempotencyStore SQLite 实现

key -> 首次创建时的响应。先写者胜出：重复写入是 no-op，绝不覆盖。
"""

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from ..models.idempotency import IdempotencyRecord
from .timestamps import from_db_ts, to_db_ts


class SqliteIdempotencyStore:
    """IdempotencyStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def lookup(self, key: str) -> dict[str, Any] | None:
        """查询幂等键缓存的响应

        Returns:
            首次创建时的响应，不存在返回 None
        """
        record = await self.get_record(key)
        return record.response if record else None

    async def get_record(self, key: str) -> IdempotencyRecord | None:
        """查询完整幂等记录"""
        cursor = await self._conn.execute(
            "SELECT * FROM idempotency_keys WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return IdempotencyRecord(
            key=row["key"],
            task_id=row["task_id"],
            response=json.loads(row["response"]),
            created_at=from_db_ts(row["created_at"]),
        )

    async def store(
        self,
        key: str,
        task_id: str,
        response: dict[str, Any],
        created_at: datetime | None = None,
    ) -> bool:
        """写入幂等记录（不自动提交事务）

        Returns:
            True 表示写入成功；False 表示 key 已存在，原记录保持不变
        """
        cursor = await self._conn.execute(
            """
            INSERT INTO idempotency_keys (key, task_id, response, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO NOTHING
            """,
            (
                key,
                task_id,
                json.dumps(response, ensure_ascii=False),
                to_db_ts(created_at or datetime.now(UTC)),
            ),
        )
        return cursor.rowcount == 1

    async def prune(self, older_than: datetime) -> int:
        """删除早于 older_than 的幂等记录（运维命令使用，不自动提交）

        Returns:
            删除的记录数
        """
        cursor = await self._conn.execute(
            "DELETE FROM idempotency_keys WHERE created_at < ?",
            (to_db_ts(older_than),),
        )
        return cursor.rowcount
