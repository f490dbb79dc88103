"""EventStore SQLite 实现 -- Outbox

事件表 append-only：只允许插入，不允许更新或删除。
(task_id, task_seq) 唯一，保证每个 version 至多一条事件。
"""

import json

import aiosqlite

from ..models.enums import EventType
from ..models.event import Event
from .timestamps import from_db_ts, to_db_ts


class SqliteEventStore:
    """EventStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_event(self, event: Event) -> None:
        """追加事件（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO events (event_id, task_id, task_seq, type, payload, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.task_id,
                event.task_seq,
                event.type.value,
                json.dumps(event.payload, ensure_ascii=False),
                to_db_ts(event.created_at),
            ),
        )

    async def list_recent(self, limit: int) -> list[Event]:
        """查询最近的事件，按 created_at 倒序（供外部检查）"""
        cursor = await self._conn.execute(
            """
            SELECT * FROM events
            ORDER BY created_at DESC, event_id DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def get_events_for_task(
        self,
        task_id: str,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[Event]:
        """查询指定任务的事件时间线，默认按 task_seq 正序"""
        order = "DESC" if newest_first else "ASC"
        sql = f"SELECT * FROM events WHERE task_id = ? ORDER BY task_seq {order}"
        params: tuple = (task_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (task_id, limit)
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def count_events(
        self,
        task_id: str,
        event_type: EventType | None = None,
    ) -> int:
        """统计指定任务的事件数，可按类型筛选"""
        if event_type is None:
            cursor = await self._conn.execute(
                "SELECT COUNT(*) FROM events WHERE task_id = ?",
                (task_id,),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT COUNT(*) FROM events WHERE task_id = ? AND type = ?",
                (task_id, event_type.value),
            )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def get_all_events(self) -> list[Event]:
        """查询所有事件（用于 Projection 重建），按时间和任务内序号排序"""
        cursor = await self._conn.execute(
            "SELECT * FROM events ORDER BY created_at ASC, task_id, task_seq ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> Event:
        """将数据库行转换为 Event 模型"""
        payload = json.loads(row["payload"]) if row["payload"] else {}
        return Event(
            event_id=row["event_id"],
            task_id=row["task_id"],
            task_seq=row["task_seq"],
            type=EventType(row["type"]),
            payload=payload,
            created_at=from_db_ts(row["created_at"]),
        )
