"""全局 pytest 配置 -- 临时 SQLite 数据库 fixture"""

from pathlib import Path

import pytest_asyncio


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path):
    """提供基于临时数据库的 StoreGroup"""
    from taskflow.core.store import create_store_group

    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.close()


@pytest_asyncio.fixture
async def engine(store_group):
    """提供注入了临时 StoreGroup 的 LifecycleEngine"""
    from taskflow.core import LifecycleEngine

    return LifecycleEngine(store_group)
