"""IdempotencyRecord Domain Model

缓存 create 请求首次成功时的响应。key 一经写入永不覆盖。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class IdempotencyRecord(BaseModel):
    """幂等记录"""

    key: str = Field(min_length=1, description="调用方提供的幂等键")
    task_id: str = Field(description="首次创建的 Task ID")
    response: dict[str, Any] = Field(description="首次成功创建时返回的原始响应")
    created_at: datetime = Field(description="写入时间")
