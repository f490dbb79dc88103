"""TaskStore 测试 -- 作用域隔离、筛选与游标分页"""

from datetime import UTC, datetime, timedelta

from taskflow.core.models import TaskFilters, TaskState
from taskflow.core.store.protocols import TaskStore
from taskflow.core.store.transaction import create_task_if_absent

BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


async def _seed(store_group, make_task, count: int, **overrides) -> list:
    tasks = []
    async with store_group.transaction() as tx:
        for i in range(count):
            task = make_task(
                task_id=f"task_{overrides.get('prefix', 'a')}_{i:03d}",
                created_at=BASE_TIME + timedelta(minutes=i),
                **{k: v for k, v in overrides.items() if k != "prefix"},
            )
            await create_task_if_absent(tx, task)
            tasks.append(task)
    return tasks


class TestGetTask:
    async def test_tenant_scoping(self, store_group, make_task):
        [task] = await _seed(store_group, make_task, 1)
        store = store_group.task_store

        assert await store.get_task(task.task_id, "tenant_1") is not None
        assert await store.get_task(task.task_id, "tenant_2") is None
        assert await store.get_task(task.task_id) is not None

    async def test_timestamps_round_trip_as_utc(self, store_group, make_task):
        [task] = await _seed(store_group, make_task, 1)
        stored = await store_group.task_store.get_task(task.task_id)
        assert stored.created_at == BASE_TIME
        assert stored.created_at.tzinfo is not None


class TestListTasks:
    async def test_default_page_size_is_20(self, store_group, make_task):
        await _seed(store_group, make_task, 25)
        tasks = await store_group.task_store.list_tasks("ws_1", "tenant_1")
        assert len(tasks) == 20

    async def test_newest_first(self, store_group, make_task):
        seeded = await _seed(store_group, make_task, 3)
        tasks = await store_group.task_store.list_tasks("ws_1", "tenant_1")
        assert [t.task_id for t in tasks] == [t.task_id for t in reversed(seeded)]

    async def test_cursor_pagination(self, store_group, make_task):
        await _seed(store_group, make_task, 5)
        store = store_group.task_store

        page1 = await store.list_tasks("ws_1", "tenant_1", TaskFilters(limit=2))
        page2 = await store.list_tasks(
            "ws_1", "tenant_1", TaskFilters(limit=2, cursor=page1[-1].created_at)
        )
        page3 = await store.list_tasks(
            "ws_1", "tenant_1", TaskFilters(limit=2, cursor=page2[-1].created_at)
        )

        ids = [t.task_id for t in page1 + page2 + page3]
        assert ids == [f"task_a_{i:03d}" for i in (4, 3, 2, 1, 0)]

    async def test_filter_by_state_and_assignee(self, store_group, make_task):
        await _seed(store_group, make_task, 2)
        await _seed(
            store_group,
            make_task,
            2,
            prefix="b",
            state=TaskState.IN_PROGRESS,
            assignee_id="user_123",
        )
        store = store_group.task_store

        in_progress = await store.list_tasks(
            "ws_1", "tenant_1", TaskFilters(state=TaskState.IN_PROGRESS)
        )
        assert {t.task_id for t in in_progress} == {"task_b_000", "task_b_001"}

        mine = await store.list_tasks("ws_1", "tenant_1", TaskFilters(assignee_id="user_123"))
        assert len(mine) == 2

        nobody = await store.list_tasks(
            "ws_1", "tenant_1", TaskFilters(state=TaskState.NEW, assignee_id="user_123")
        )
        assert nobody == []

    async def test_workspace_and_tenant_isolation(self, store_group, make_task):
        await _seed(store_group, make_task, 2)
        await _seed(store_group, make_task, 1, prefix="w", workspace_id="ws_2")
        await _seed(store_group, make_task, 1, prefix="t", tenant_id="tenant_2")
        store = store_group.task_store

        assert len(await store.list_tasks("ws_1", "tenant_1")) == 2
        assert [t.task_id for t in await store.list_tasks("ws_2", "tenant_1")] == ["task_w_000"]
        assert [t.task_id for t in await store.list_tasks("ws_1", "tenant_2")] == ["task_t_000"]

    async def test_satisfies_protocol(self, store_group):
        assert isinstance(store_group.task_store, TaskStore)
