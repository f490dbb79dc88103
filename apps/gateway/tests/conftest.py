"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskflow.core.store import create_store_group


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化 StoreGroup，绕过 lifespan）"""
    db_path = str(tmp_path / "sqlite" / "test.db")
    os.environ["TASKFLOW_DB_PATH"] = db_path

    from taskflow.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(db_path)
    application.state.store_group = store_group

    yield application

    await store_group.close()
    os.environ.pop("TASKFLOW_DB_PATH", None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
