"""Recommendation generation service.

Heuristic analysis over a principal's resources and monthly cost breakdown:

- idle: stopped resources still accruing cost, or running ones with low
  utilization and meaningful spend
- rightsizing: expensive or "large" compute instances
- anomaly: services whose spend jumped sharply against the previous month

Candidates are written to ``recommendations`` in a single batch.
"""

import logging
import math
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any

from cloudops.core.audit import ActivityLog, utc_now_iso
from cloudops.core.store import RowStore
from cloudops.schemas.recommendation import (
    ALL_MODES,
    GenerationResult,
    RecommendationDraft,
    RecommendationMode,
)
from cloudops.schemas.resource import Resource

logger = logging.getLogger(__name__)

RESOURCES_TABLE = "resources"
COSTS_TABLE = "costs_breakdown"
RECOMMENDATIONS_TABLE = "recommendations"

IDLE_THRESHOLDS = {
    "stopped_daily_cost": 0.2,  # Stopped but still paying more than this per day
    "utilization_ceiling": 10.0,  # Percent
    "running_daily_cost": 2.0,
    "savings_ratio": 0.6,
    "priority": 80,
}

RIGHTSIZING_THRESHOLDS = {
    "large_daily_cost": 10.0,
    "any_daily_cost": 15.0,
    "savings_ratio": 0.35,
    "target_size": "medium",
    "priority": 70,
}

ANOMALY_THRESHOLDS = {
    "growth_ratio": 1.5,
    "min_increase": 50.0,
    "priority": 90,
}

COMPUTE_TYPE_MARKERS = ("ec2", "vm", "computeengine")


def round2(value: float) -> float:
    """Round half up to cents."""
    return math.floor(value * 100 + 0.5) / 100


def format_amount(value: float) -> str:
    """Render a number without a trailing ".0" for whole values."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _number(value: Any) -> float:
    try:
        return float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError):
        return 0.0


def month_starts(today: date | None = None) -> tuple[str, str]:
    """First day of the current and previous calendar month as ISO dates."""
    today = today or datetime.now(UTC).date()
    current = today.replace(day=1)
    if current.month == 1:
        previous = current.replace(year=current.year - 1, month=12)
    else:
        previous = current.replace(month=current.month - 1)
    return current.isoformat(), previous.isoformat()


def monthly_cost(resource: Resource) -> float:
    """Monthly cost column, or 30 days of the daily cost when absent."""
    if resource.cost_monthly:
        return resource.cost_monthly
    return resource.cost_daily * 30


def sum_by_service(rows: Iterable[dict[str, Any]]) -> dict[str, float]:
    """Total ``amount`` per ``service``; rows without a service count as "unknown"."""
    totals: dict[str, float] = {}
    for row in rows:
        service = str(row.get("service") or "unknown")
        totals[service] = totals.get(service, 0.0) + _number(row.get("amount"))
    return totals


def resolve_modes(modes: Any) -> list[Any]:
    """Requested modes, or every mode when none are given."""
    if isinstance(modes, list) and modes:
        return modes
    return list(ALL_MODES)


class RecommendationGenerator:
    """Service producing recommendation candidates for one principal."""

    def __init__(self, store: RowStore, user_id: str, now: str | None = None):
        self.store = store
        self.user_id = user_id
        self.now = now or utc_now_iso()
        self.activity = ActivityLog(store, actor=user_id, now=self.now)

    # ==========================================================================
    # Heuristics
    # ==========================================================================

    def detect_idle(self, resources: list[Resource]) -> list[RecommendationDraft]:
        """Stopped-but-billed and underutilized resources."""
        drafts = []
        for r in resources:
            daily = r.cost_daily
            state = r.state
            utilization = _number(r.metadata.get("utilization") or r.metadata.get("cpu_utilization"))

            stopped_billed = state == "stopped" and daily > IDLE_THRESHOLDS["stopped_daily_cost"]
            underused = (
                state == "running"
                and 0 < utilization < IDLE_THRESHOLDS["utilization_ceiling"]
                and daily >= IDLE_THRESHOLDS["running_daily_cost"]
            )
            if not (stopped_billed or underused):
                continue

            if state == "stopped":
                reason = f"Resource is stopped but incurring ~${daily:.2f}/day."
            else:
                reason = f"Low utilization (~{format_amount(utilization)}%) with spend ~${daily:.2f}/day."

            drafts.append(
                RecommendationDraft(
                    user_id=self.user_id,
                    resource_id=r.id,
                    title=f"Idle {r.type or 'resource'} detected",
                    reason=reason,
                    priority=IDLE_THRESHOLDS["priority"],
                    impact=round2(monthly_cost(r) * IDLE_THRESHOLDS["savings_ratio"]),
                    provider=r.provider or None,
                    metadata={
                        "kind": RecommendationMode.IDLE.value,
                        "daily_cost": daily,
                        "state": state,
                        "suggested_action": "stop_or_deprovision",
                    },
                    created_at=self.now,
                )
            )
        return drafts

    def detect_rightsizing(self, resources: list[Resource]) -> list[RecommendationDraft]:
        """Oversized compute instances."""
        drafts = []
        for r in resources:
            resource_type = r.type.lower()
            if not any(marker in resource_type for marker in COMPUTE_TYPE_MARKERS):
                continue

            size = str(r.metadata.get("size") or r.tags.get("size") or "").lower()
            daily = r.cost_daily
            oversized = (
                size == "large" and daily > RIGHTSIZING_THRESHOLDS["large_daily_cost"]
            ) or daily > RIGHTSIZING_THRESHOLDS["any_daily_cost"]
            if not oversized:
                continue

            drafts.append(
                RecommendationDraft(
                    user_id=self.user_id,
                    resource_id=r.id,
                    title=f"Rightsize {r.type or 'compute'} to smaller size",
                    reason=(
                        f"Detected potential oversizing "
                        f"(size={size or 'unknown'}; cost ~${daily:.2f}/day)."
                    ),
                    priority=RIGHTSIZING_THRESHOLDS["priority"],
                    impact=round2(monthly_cost(r) * RIGHTSIZING_THRESHOLDS["savings_ratio"]),
                    provider=r.provider or None,
                    metadata={
                        "kind": RecommendationMode.RIGHTSIZING.value,
                        "current_size": size or "unknown",
                        "target_size": RIGHTSIZING_THRESHOLDS["target_size"],
                    },
                    created_at=self.now,
                )
            )
        return drafts

    def detect_anomalies(
        self,
        current_costs: list[dict[str, Any]],
        previous_costs: list[dict[str, Any]],
    ) -> list[RecommendationDraft]:
        """Services with a month-over-month spend spike."""
        current = sum_by_service(current_costs)
        previous = sum_by_service(previous_costs)

        drafts = []
        for service, cur in current.items():
            prev = previous.get(service, 0.0)
            spiked = (
                prev > 0
                and cur > prev * ANOMALY_THRESHOLDS["growth_ratio"]
                and cur - prev > ANOMALY_THRESHOLDS["min_increase"]
            )
            if not spiked:
                continue

            drafts.append(
                RecommendationDraft(
                    user_id=self.user_id,
                    resource_id=None,
                    title=f"Anomalous spend spike detected in {service}",
                    reason=(
                        f"Spend increased from ~${format_amount(round2(prev))} to ~${format_amount(round2(cur))} "
                        f"compared to previous month."
                    ),
                    priority=ANOMALY_THRESHOLDS["priority"],
                    impact=round2(cur - prev),
                    provider=None,
                    metadata={
                        "kind": RecommendationMode.ANOMALY.value,
                        "service": service,
                        "prev": prev,
                        "cur": cur,
                    },
                    created_at=self.now,
                )
            )
        return drafts

    # ==========================================================================
    # Run
    # ==========================================================================

    async def generate(self, modes: Any = None, today: date | None = None) -> GenerationResult:
        """Run the requested analysis passes and store the candidates.

        Args:
            modes: List of modes ("idle", "rightsizing", "anomaly"); all when empty
            today: Reference date for the cost months (defaults to today, UTC)

        Returns:
            GenerationResult with the inserted count and the modes run

        Raises:
            StoreError: If inputs cannot be loaded or the batch insert fails
        """
        modes = resolve_modes(modes)
        logger.info(f"Generating recommendations for user {self.user_id} (modes={modes})")

        resource_rows = await self.store.select(RESOURCES_TABLE, {"user_id": self.user_id})
        resources = [Resource.model_validate(row) for row in resource_rows]

        current_month, previous_month = month_starts(today)
        current_costs = await self.store.select(
            COSTS_TABLE, {"user_id": self.user_id, "month": current_month}
        )
        previous_costs = await self.store.select(
            COSTS_TABLE, {"user_id": self.user_id, "month": previous_month}
        )

        candidates: list[RecommendationDraft] = []
        if RecommendationMode.IDLE.value in modes:
            candidates.extend(self.detect_idle(resources))
        if RecommendationMode.RIGHTSIZING.value in modes:
            candidates.extend(self.detect_rightsizing(resources))
        if RecommendationMode.ANOMALY.value in modes:
            candidates.extend(self.detect_anomalies(current_costs, previous_costs))

        inserted = 0
        if candidates:
            rows = await self.store.insert(
                RECOMMENDATIONS_TABLE, [c.model_dump(mode="json") for c in candidates]
            )
            inserted = len(rows)

        await self.activity.record(
            "recommendations_run",
            f"Generated {inserted} recommendation(s) [modes={','.join(str(m) for m in modes)}]",
        )
        logger.info(f"Inserted {inserted} recommendation(s) for user {self.user_id}")

        return GenerationResult(inserted=inserted, modes=modes)
