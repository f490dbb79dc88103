"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与 LifecycleEngine

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Header, Request
from taskflow.core import LifecycleEngine
from taskflow.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine(request: Request) -> LifecycleEngine:
    """基于当前 StoreGroup 构建 LifecycleEngine"""
    return LifecycleEngine(request.app.state.store_group)


def get_tenant_id(
    x_tenant_id: str = Header(min_length=1, description="租户标识"),
) -> str:
    """X-Tenant-Id 请求头（必填）"""
    return x_tenant_id
