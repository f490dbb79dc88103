"""CLI 入口模块 -- python -m taskflow.core <command>

支持的命令：
  rebuild-projections      从 events 表重建 tasks 表
  prune-idempotency [days] 删除早于 N 天的幂等记录
"""

import asyncio
import sys
from datetime import UTC, datetime, timedelta

from .config import get_db_path, get_idempotency_retention_days


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskflow.core <command>")
        print("命令:")
        print("  rebuild-projections      从 events 表重建 tasks 表")
        print("  prune-idempotency [days] 删除早于 N 天的幂等记录")
        sys.exit(1)

    command = sys.argv[1]

    if command == "rebuild-projections":
        asyncio.run(rebuild_projections())
    elif command == "prune-idempotency":
        days = int(sys.argv[2]) if len(sys.argv) > 2 else get_idempotency_retention_days()
        if days is None:
            print("未配置保留天数（TASKFLOW_IDEMPOTENCY_RETENTION_DAYS），幂等记录无限期保留")
            sys.exit(1)
        asyncio.run(prune_idempotency(days))
    else:
        print(f"未知命令: {command}")
        print("可用命令: rebuild-projections, prune-idempotency")
        sys.exit(1)


async def rebuild_projections() -> None:
    """执行 Projection 重建"""
    from .projection import rebuild_all
    from .store import create_store_group

    db_path = get_db_path()

    print(f"数据库路径: {db_path}")
    print("开始重建 Projection...")

    store_group = await create_store_group(db_path)

    try:
        event_count = await rebuild_all(
            store_group.conn,
            store_group.event_store,
            store_group.task_store,
        )
        print(f"重建完成，处理 {event_count} 条事件")
    finally:
        await store_group.close()


async def prune_idempotency(days: int) -> int:
    """删除早于 days 天的幂等记录，返回删除条数"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    cutoff = datetime.now(UTC) - timedelta(days=days)

    try:
        async with store_group.transaction() as tx:
            deleted = await tx.idempotency_store.prune(cutoff)
        print(f"已删除 {deleted} 条早于 {cutoff.isoformat()} 的幂等记录")
        return deleted
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
