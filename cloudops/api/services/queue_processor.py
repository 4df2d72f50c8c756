"""Queue processing service.

Drains queued ``operations`` and ``recommendation_actions`` rows for a
principal, moving each through running -> success and recording the result.
Execution is simulated: every loaded row ends in ``success``.

Store failures are not caught per item. A failed patch aborts the rest of
the loop and can leave a row in ``running``; there is no compensating
transition back to ``queued`` or to ``error``.
"""

import logging
from collections.abc import Callable
from typing import Any

from cloudops.core.audit import ActivityLog, utc_now_iso
from cloudops.core.store import RowStore
from cloudops.schemas.operation import (
    DrainResult,
    Operation,
    OperationResult,
    QueueStatus,
    RecommendationAction,
)

logger = logging.getLogger(__name__)

OPERATIONS_TABLE = "operations"
RECOMMENDATION_ACTIONS_TABLE = "recommendation_actions"

DEFAULT_MAX_ITEMS = 20


def _simulate_scale(params: dict[str, Any]) -> OperationResult:
    return OperationResult(details=f"Scaled to {params.get('size') or 'medium'}")


OPERATION_SIMULATORS: dict[str, Callable[[dict[str, Any]], OperationResult]] = {
    "start": lambda params: OperationResult(details="Resource started"),
    "stop": lambda params: OperationResult(details="Resource stopped"),
    "scale": _simulate_scale,
}


def simulate_operation(operation: str, params: dict[str, Any] | None = None) -> OperationResult:
    """Simulated execution; unknown operations succeed as a no-op."""
    simulator = OPERATION_SIMULATORS.get(operation)
    if simulator is None:
        return OperationResult(details="No-op")
    return simulator(params or {})


class QueueProcessor:
    """Service executing queued work for one principal."""

    def __init__(self, store: RowStore, user_id: str, now: str | None = None):
        self.store = store
        self.user_id = user_id
        self.now = now or utc_now_iso()
        self.activity = ActivityLog(store, actor=user_id, now=self.now)

    async def load_queued_operations(self, limit: int) -> list[Operation]:
        rows = await self.store.select(
            OPERATIONS_TABLE,
            {"user_id": self.user_id, "status": QueueStatus.QUEUED.value},
            limit=limit,
        )
        return [Operation.model_validate(row) for row in rows]

    async def load_queued_actions(self, limit: int) -> list[RecommendationAction]:
        rows = await self.store.select(
            RECOMMENDATION_ACTIONS_TABLE,
            {"user_id": self.user_id, "status": QueueStatus.QUEUED.value},
            limit=limit,
        )
        return [RecommendationAction.model_validate(row) for row in rows]

    async def _transition(
        self,
        table: str,
        row_id: str | int,
        status: QueueStatus,
        result: dict[str, Any] | None = None,
    ) -> None:
        values: dict[str, Any] = {"status": status.value, "updated_at": self.now}
        if result is not None:
            values["result"] = result
        # TODO: claim rows with a conditional patch (status=eq.queued) before
        # replacing the simulation with real provider calls.
        await self.store.patch(table, {"id": row_id, "user_id": self.user_id}, values)

    async def drain(self, max_items: int = DEFAULT_MAX_ITEMS) -> DrainResult:
        """Process up to ``max_items`` operations and ``max_items`` actions.

        Each queue gets its own budget.

        Args:
            max_items: Maximum rows loaded from each queue

        Returns:
            DrainResult with the number of rows processed per queue

        Raises:
            StoreError: On any load or patch failure
        """
        logger.info(f"Draining queues for user {self.user_id} (max={max_items})")

        operations = await self.load_queued_operations(max_items)
        actions = await self.load_queued_actions(max_items)

        processed_operations = 0
        for operation in operations:
            await self.process_operation(operation)
            processed_operations += 1

        processed_actions = 0
        for action in actions:
            await self.process_recommendation_action(action)
            processed_actions += 1

        await self.activity.record(
            "queue_processor",
            f"Processed {processed_operations} operation(s) and "
            f"{processed_actions} recommendation action(s)",
        )
        logger.info(
            f"Queue drain complete for user {self.user_id}: "
            f"{processed_operations} operation(s), {processed_actions} action(s)"
        )

        return DrainResult(
            operations=processed_operations,
            recommendation_actions=processed_actions,
        )

    async def process_operation(self, operation: Operation) -> OperationResult:
        """Run one operation through running -> success."""
        await self._transition(OPERATIONS_TABLE, operation.id, QueueStatus.RUNNING)

        result = simulate_operation(operation.operation, operation.params)
        await self._transition(
            OPERATIONS_TABLE, operation.id, QueueStatus.SUCCESS, result=result.model_dump()
        )
        logger.debug(f"Operation {operation.id} ({operation.operation}): {result.details}")

        await self.activity.record(
            "operation",
            f"Operation {operation.operation} executed on resource {operation.resource_id}",
        )
        return result

    async def process_recommendation_action(self, action: RecommendationAction) -> dict[str, Any]:
        """Apply one recommendation action through running -> success."""
        await self._transition(RECOMMENDATION_ACTIONS_TABLE, action.id, QueueStatus.RUNNING)

        message = f"Applied recommendation {action.recommendation_id}"
        result = {"message": message}
        await self._transition(
            RECOMMENDATION_ACTIONS_TABLE, action.id, QueueStatus.SUCCESS, result=result
        )

        await self.activity.record("recommendation_apply", message)
        return result
