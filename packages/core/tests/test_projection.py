"""Projection 重建测试

测试内容：
1. 单事件应用（快照 + 增量）
2. 重建前后 tasks 表一致
3. 空数据库重建不报错
"""

from datetime import UTC, datetime

from taskflow.core.models import (
    Event,
    EventType,
    Role,
    TaskCreatedPayload,
    TaskState,
)
from taskflow.core.projection import apply_event, rebuild_all

TS = datetime(2026, 1, 1, tzinfo=UTC)


def _created_event(make_task) -> Event:
    task = make_task(task_id="TSK001", created_at=TS)
    return Event(
        event_id="EVT001",
        task_id="TSK001",
        task_seq=1,
        type=EventType.TASK_CREATED,
        payload=TaskCreatedPayload(**task.model_dump()).model_dump(mode="json"),
        created_at=TS,
    )


class TestApplyEvent:
    """单事件应用测试"""

    def test_apply_task_created(self, make_task):
        tasks = {}
        apply_event(tasks, _created_event(make_task))

        assert tasks["TSK001"].state == TaskState.NEW
        assert tasks["TSK001"].title == "Implement auth"
        assert tasks["TSK001"].version == 1

    def test_apply_assign_and_transition(self, make_task):
        tasks = {}
        apply_event(tasks, _created_event(make_task))
        apply_event(
            tasks,
            Event(
                event_id="EVT002",
                task_id="TSK001",
                task_seq=2,
                type=EventType.TASK_ASSIGNED,
                payload={"assignee_id": "user_123"},
                created_at=TS,
            ),
        )
        apply_event(
            tasks,
            Event(
                event_id="EVT003",
                task_id="TSK001",
                task_seq=3,
                type=EventType.TASK_STATE_CHANGED,
                payload={"from_state": "NEW", "to_state": "IN_PROGRESS"},
                created_at=TS,
            ),
        )

        task = tasks["TSK001"]
        assert task.assignee_id == "user_123"
        assert task.state == TaskState.IN_PROGRESS
        assert task.version == 3

    def test_event_for_unknown_task_is_ignored(self):
        tasks = {}
        apply_event(
            tasks,
            Event(
                event_id="EVT009",
                task_id="GHOST",
                task_seq=2,
                type=EventType.TASK_ASSIGNED,
                payload={"assignee_id": "x"},
                created_at=TS,
            ),
        )
        assert tasks == {}


class TestRebuildAll:
    async def test_rebuild_matches_live_state(self, engine, store_group):
        first, _ = await engine.create("tenant_1", "ws_1", "Implement auth", "HIGH")
        second, _ = await engine.create("tenant_1", "ws_2", "Write docs", "LOW")
        await engine.assign("tenant_1", "ws_1", first.task_id, Role.MANAGER, "user_123", 1)
        await engine.transition(
            "tenant_1", "ws_1", first.task_id, Role.AGENT, "user_123", TaskState.IN_PROGRESS, 2
        )
        await engine.transition(
            "tenant_1", "ws_2", second.task_id, Role.MANAGER, "boss", TaskState.CANCELLED, 1
        )

        before = {
            t.task_id: t
            for ws in ("ws_1", "ws_2")
            for t in await engine.list_tasks("tenant_1", ws)
        }

        event_count = await rebuild_all(
            store_group.conn, store_group.event_store, store_group.task_store
        )

        after = {
            t.task_id: t
            for ws in ("ws_1", "ws_2")
            for t in await engine.list_tasks("tenant_1", ws)
        }
        assert event_count == 5
        assert after == before

    async def test_rebuild_empty_database(self, store_group):
        event_count = await rebuild_all(
            store_group.conn, store_group.event_store, store_group.task_store
        )
        assert event_count == 0
