"""时间戳存储格式

所有时间列统一存为 UTC、微秒精度的 ISO 字符串，保证字典序即时间序。
"""

from datetime import UTC, datetime


def to_db_ts(value: datetime) -> str:
    """datetime -> 可按字典序比较的 ISO 字符串"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_ts(value: str) -> datetime:
    """ISO 字符串 -> datetime"""
    return datetime.fromisoformat(value)
