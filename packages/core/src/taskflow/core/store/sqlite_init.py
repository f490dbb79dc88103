"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id       TEXT PRIMARY KEY,
    tenant_id     TEXT NOT NULL,
    workspace_id  TEXT NOT NULL,
    title         TEXT NOT NULL,
    priority      TEXT NOT NULL DEFAULT 'MEDIUM',
    state         TEXT NOT NULL DEFAULT 'NEW',
    assignee_id   TEXT,
    version       INTEGER NOT NULL DEFAULT 1,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_workspace_state ON tasks(workspace_id, state);",
    (
        "CREATE INDEX IF NOT EXISTS idx_tasks_workspace_assignee "
        "ON tasks(workspace_id, assignee_id);"
    ),
    (
        "CREATE INDEX IF NOT EXISTS idx_tasks_scope_created_at "
        "ON tasks(tenant_id, workspace_id, created_at DESC);"
    ),
]

# events 表 DDL（Outbox）
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS events (
    event_id    TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    task_seq    INTEGER NOT NULL,
    type        TEXT NOT NULL,
    payload     TEXT NOT NULL DEFAULT '{}',
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_EVENTS_INDEXES = [
    # 每个 version 至多一条事件
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_events_task_seq ON events(task_id, task_seq);",
    "CREATE INDEX IF NOT EXISTS idx_events_created_at ON events(created_at);",
]

# idempotency_keys 表 DDL
_IDEMPOTENCY_DDL = """
CREATE TABLE IF NOT EXISTS idempotency_keys (
    key         TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    response    TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
"""

_IDEMPOTENCY_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_idempotency_created_at ON idempotency_keys(created_at);",
]


async def apply_pragmas(conn: aiosqlite.Connection, busy_timeout_ms: int = 5000) -> None:
    """设置连接级 PRAGMA（每个新连接都需要执行）"""
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")


async def open_connection(
    db_path: str,
    busy_timeout_ms: int = 5000,
    autocommit: bool = False,
) -> aiosqlite.Connection:
    """打开并配置一个 aiosqlite 连接

    Args:
        db_path: SQLite 数据库文件路径
        busy_timeout_ms: 写锁等待上限
        autocommit: True 时关闭 sqlite3 隐式事务，由调用方显式 BEGIN/COMMIT
    """
    if autocommit:
        conn = await aiosqlite.connect(db_path, isolation_level=None)
    else:
        conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await apply_pragmas(conn, busy_timeout_ms)
    return conn


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_EVENTS_DDL)
    await conn.execute(_IDEMPOTENCY_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _EVENTS_INDEXES + _IDEMPOTENCY_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
