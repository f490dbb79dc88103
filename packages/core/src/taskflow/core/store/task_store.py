"""TaskStore SQLite 实现

tasks 表持有权威状态与 version。
写操作不自动提交事务，需由调用方（Transaction）管理。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import TaskPriority, TaskState
from ..models.task import Task, TaskFilters
from .timestamps import from_db_ts, to_db_ts


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, tenant_id, workspace_id, title, priority,
                               state, assignee_id, version, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.tenant_id,
                task.workspace_id,
                task.title,
                task.priority.value,
                task.state.value,
                task.assignee_id,
                task.version,
                to_db_ts(task.created_at),
                to_db_ts(task.updated_at),
            ),
        )

    async def get_task(self, task_id: str, tenant_id: str | None = None) -> Task | None:
        """根据 task_id 查询任务，传入 tenant_id 时按租户隔离"""
        if tenant_id is None:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks WHERE task_id = ?",
                (task_id,),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks WHERE task_id = ? AND tenant_id = ?",
                (task_id, tenant_id),
            )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        workspace_id: str,
        tenant_id: str,
        filters: TaskFilters | None = None,
    ) -> list[Task]:
        """查询工作区内任务列表，按 created_at 倒序

        cursor 为 created_at 边界，仅返回严格早于 cursor 的任务。
        """
        filters = filters or TaskFilters()
        conditions = ["workspace_id = ?", "tenant_id = ?"]
        params: list = [workspace_id, tenant_id]

        if filters.state is not None:
            conditions.append("state = ?")
            params.append(filters.state.value)
        if filters.assignee_id is not None:
            conditions.append("assignee_id = ?")
            params.append(filters.assignee_id)
        if filters.cursor is not None:
            conditions.append("created_at < ?")
            params.append(to_db_ts(filters.cursor))

        params.append(filters.limit)
        cursor = await self._conn.execute(
            f"""
            SELECT * FROM tasks
            WHERE {" AND ".join(conditions)}
            ORDER BY created_at DESC, task_id DESC
            LIMIT ?
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_if_version(
        self,
        task_id: str,
        expected_version: int,
        updated_at: datetime,
        *,
        state: TaskState | None = None,
        assignee_id: str | None = None,
    ) -> bool:
        """条件写：仅当 version 仍等于 expected_version 时更新并 version + 1

        Returns:
            True 如果恰好更新了一行；False 表示 version 已被其他写入方推进
        """
        assignments = ["version = version + 1", "updated_at = ?"]
        params: list = [to_db_ts(updated_at)]
        if state is not None:
            assignments.append("state = ?")
            params.append(state.value)
        if assignee_id is not None:
            assignments.append("assignee_id = ?")
            params.append(assignee_id)
        params.extend([task_id, expected_version])

        cursor = await self._conn.execute(
            f"""
            UPDATE tasks
            SET {", ".join(assignments)}
            WHERE task_id = ? AND version = ?
            """,
            params,
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row["task_id"],
            tenant_id=row["tenant_id"],
            workspace_id=row["workspace_id"],
            title=row["title"],
            priority=TaskPriority(row["priority"]),
            state=TaskState(row["state"]),
            assignee_id=row["assignee_id"],
            version=row["version"],
            created_at=from_db_ts(row["created_at"]),
            updated_at=from_db_ts(row["updated_at"]),
        )
