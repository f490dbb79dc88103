"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、SQLite 锁等待时长、日志模式、分页大小、幂等记录保留期等可配置项。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKFLOW_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKFLOW_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskflow.db"),
    )


def get_busy_timeout_ms() -> int:
    """获取写锁等待上限（毫秒），对应 PRAGMA busy_timeout"""
    return int(os.environ.get("TASKFLOW_BUSY_TIMEOUT_MS", "5000"))


def get_log_format() -> str:
    """获取日志渲染模式：dev（默认，可读输出）或 json"""
    log_format = os.environ.get("TASKFLOW_LOG_FORMAT", "dev").lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(
            f"TASKFLOW_LOG_FORMAT must be one of {sorted(LOG_FORMATS)}, got {log_format!r}"
        )
    return log_format


def get_log_level() -> str:
    """获取根日志级别，默认 INFO"""
    return os.environ.get("TASKFLOW_LOG_LEVEL", "INFO").upper()


def get_idempotency_retention_days() -> int | None:
    """获取幂等记录保留天数

    未设置时返回 None，表示无限期保留（默认策略）。
    """
    val = os.environ.get("TASKFLOW_IDEMPOTENCY_RETENTION_DAYS")
    if not val:
        return None
    return int(val)


# 日志渲染模式
LOG_FORMATS: frozenset[str] = frozenset({"dev", "json"})

# 标题最大长度
TITLE_MAX_LENGTH: int = 120

# 列表默认分页大小 / 上限
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# 任务详情中返回的最近事件条数
TIMELINE_LIMIT: int = 20

# /events 默认返回条数 / 上限
DEFAULT_EVENTS_LIMIT: int = 50
MAX_EVENTS_LIMIT: int = 500
