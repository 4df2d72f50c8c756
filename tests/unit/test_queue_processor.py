"""Unit tests for the queue processor."""

import pytest

from cloudops.api.services.queue_processor import QueueProcessor, simulate_operation
from cloudops.core.store import StoreError
from tests.conftest import OTHER_USER_ID, TEST_USER_ID
from tests.fixtures import InMemoryRowStore

NOW = "2026-03-01T12:00:00+00:00"


def op(op_id, operation, params=None, status="queued", user_id=TEST_USER_ID):
    return {
        "id": op_id,
        "user_id": user_id,
        "resource_id": f"res-{op_id}",
        "operation": operation,
        "params": params or {},
        "status": status,
    }


def action(action_id, recommendation_id, status="queued", user_id=TEST_USER_ID):
    return {
        "id": action_id,
        "user_id": user_id,
        "recommendation_id": recommendation_id,
        "status": status,
    }


class TestSimulateOperation:
    @pytest.mark.parametrize(
        "operation,params,details",
        [
            ("start", {}, "Resource started"),
            ("stop", {}, "Resource stopped"),
            ("scale", {"size": "large"}, "Scaled to large"),
            ("scale", {}, "Scaled to medium"),
            ("scale", {"size": ""}, "Scaled to medium"),
            ("frobnicate", {}, "No-op"),
            ("", None, "No-op"),
        ],
    )
    def test_simulation_details(self, operation, params, details):
        result = simulate_operation(operation, params)
        assert result.ok is True
        assert result.details == details


class TestDrain:
    """Tests for QueueProcessor.drain."""

    @pytest.mark.asyncio
    async def test_empty_queues(self):
        store = InMemoryRowStore()

        result = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert result.message == "Queue processed"
        assert result.operations == 0
        assert result.recommendation_actions == 0
        (entry,) = store.rows("activity_log")
        assert entry["type"] == "queue_processor"
        assert entry["summary"] == "Processed 0 operation(s) and 0 recommendation action(s)"

    @pytest.mark.asyncio
    async def test_operations_move_to_success_with_result(self):
        store = InMemoryRowStore(
            {
                "operations": [
                    op("o1", "stop"),
                    op("o2", "scale", {"size": "small", "rule_id": "r1"}),
                    op("o3", "frobnicate"),
                ]
            }
        )

        result = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert result.operations == 3
        rows = {row["id"]: row for row in store.rows("operations")}
        assert rows["o1"]["status"] == "success"
        assert rows["o1"]["result"] == {"ok": True, "details": "Resource stopped"}
        assert rows["o2"]["result"] == {"ok": True, "details": "Scaled to small"}
        assert rows["o3"]["result"] == {"ok": True, "details": "No-op"}
        assert rows["o1"]["updated_at"] == NOW

        summaries = [a["summary"] for a in store.rows("activity_log", type="operation")]
        assert summaries == [
            "Operation stop executed on resource res-o1",
            "Operation scale executed on resource res-o2",
            "Operation frobnicate executed on resource res-o3",
        ]

    @pytest.mark.asyncio
    async def test_running_precedes_success(self):
        store = InMemoryRowStore({"operations": [op("o1", "start")]})

        await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        patches = store.calls_to("patch", "operations")
        assert [p["values"]["status"] for p in patches] == ["running", "success"]
        assert "result" not in patches[0]["values"]
        assert patches[1]["values"]["result"]["details"] == "Resource started"

    @pytest.mark.asyncio
    async def test_patches_are_scoped_to_the_principal(self):
        store = InMemoryRowStore({"operations": [op("o1", "start")]})

        await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        for patch in store.calls_to("patch", "operations"):
            assert patch["filters"] == {"id": "o1", "user_id": TEST_USER_ID}

    @pytest.mark.asyncio
    async def test_only_queued_rows_of_the_principal_are_processed(self):
        store = InMemoryRowStore(
            {
                "operations": [
                    op("o1", "stop", status="success"),
                    op("o2", "stop", status="running"),
                    op("o3", "stop", user_id=OTHER_USER_ID),
                    op("o4", "stop"),
                ]
            }
        )

        result = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert result.operations == 1
        assert store.rows("operations", id="o3")[0]["status"] == "queued"
        assert store.rows("operations", id="o2")[0]["status"] == "running"
        assert [p["filters"]["id"] for p in store.calls_to("patch", "operations")] == ["o4", "o4"]

    @pytest.mark.asyncio
    async def test_terminal_rows_are_not_reprocessed(self):
        store = InMemoryRowStore({"operations": [op("o1", "stop")]})

        await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()
        second = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert second.operations == 0
        assert len(store.calls_to("patch", "operations")) == 2

    @pytest.mark.asyncio
    async def test_recommendation_actions(self):
        store = InMemoryRowStore({"recommendation_actions": [action("a1", "rec-7")]})

        result = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert result.recommendation_actions == 1
        (row,) = store.rows("recommendation_actions")
        assert row["status"] == "success"
        assert row["result"] == {"message": "Applied recommendation rec-7"}
        (entry,) = store.rows("activity_log", type="recommendation_apply")
        assert entry["summary"] == "Applied recommendation rec-7"

    @pytest.mark.asyncio
    async def test_each_queue_has_its_own_budget(self):
        store = InMemoryRowStore(
            {
                "operations": [op(f"o{i}", "start") for i in range(3)],
                "recommendation_actions": [action(f"a{i}", f"rec-{i}") for i in range(3)],
            }
        )

        result = await QueueProcessor(store, TEST_USER_ID, now=NOW).drain(max_items=2)

        assert result.operations == 2
        assert result.recommendation_actions == 2
        assert store.calls_to("select", "operations")[0]["limit"] == 2
        assert store.calls_to("select", "recommendation_actions")[0]["limit"] == 2
        assert len(store.rows("operations", status="queued")) == 1
        assert len(store.rows("recommendation_actions", status="queued")) == 1
        (summary,) = store.rows("activity_log", type="queue_processor")
        assert summary["summary"] == "Processed 2 operation(s) and 2 recommendation action(s)"

    @pytest.mark.asyncio
    async def test_patch_failure_aborts_the_drain(self):
        """A failed success transition leaves the row running and skips the rest."""
        store = InMemoryRowStore(
            {
                "operations": [op("o1", "start"), op("o2", "stop")],
                "recommendation_actions": [action("a1", "rec-1")],
            }
        )
        store.fail(
            "patch",
            "operations",
            when=lambda filters, values: filters["id"] == "o1" and values["status"] == "success",
        )

        with pytest.raises(StoreError):
            await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert store.rows("operations", id="o1")[0]["status"] == "running"
        assert store.rows("operations", id="o2")[0]["status"] == "queued"
        assert store.rows("recommendation_actions")[0]["status"] == "queued"
        assert store.rows("activity_log", type="queue_processor") == []

    @pytest.mark.asyncio
    async def test_load_failure_raises(self):
        store = InMemoryRowStore()
        store.fail("select", "recommendation_actions")

        with pytest.raises(StoreError):
            await QueueProcessor(store, TEST_USER_ID, now=NOW).drain()

        assert store.calls_to("patch", "operations") == []
