"""Automation rule enforcement service.

Evaluates every enabled automation rule of a principal against that
principal's resources and enqueues one operation per matched resource.
Rules run sequentially in the order the store returns them; an insert
failure is recorded against its rule and the pass continues.

Enforcement is not at-most-once: invoking it again (or concurrently)
enqueues the same operations again.
"""

import logging

from cloudops.core.audit import ActivityLog, utc_now_iso
from cloudops.core.store import RowStore, StoreError, StoreResponseError
from cloudops.core.tag_query import filter_resources
from cloudops.schemas.automation import (
    AutomationRule,
    AutomationRuleRun,
    EnforcementResult,
    OperationDraft,
    RunOutcome,
)
from cloudops.schemas.resource import Resource

logger = logging.getLogger(__name__)

RULES_TABLE = "automation_rules"
RESOURCES_TABLE = "resources"
OPERATIONS_TABLE = "operations"
RULE_RUNS_TABLE = "automation_rule_runs"

# Rules do not carry a target size yet
DEFAULT_SCALE_SIZE = "medium"


def build_operation_params(rule: AutomationRule) -> dict:
    """Parameters attached to an operation enqueued by ``rule``."""
    if rule.action == "scale":
        return {"size": DEFAULT_SCALE_SIZE, "rule_id": rule.id}
    return {"rule_id": rule.id}


class RuleEnforcer:
    """Service evaluating automation rules for one principal."""

    def __init__(self, store: RowStore, user_id: str, now: str | None = None):
        self.store = store
        self.user_id = user_id
        self.now = now or utc_now_iso()
        self.activity = ActivityLog(store, actor=user_id, now=self.now)

    async def load_enabled_rules(self) -> list[AutomationRule]:
        rows = await self.store.select(
            RULES_TABLE, {"user_id": self.user_id, "status": "enabled"}
        )
        return [AutomationRule.model_validate(row) for row in rows]

    async def load_resources(self) -> list[Resource]:
        rows = await self.store.select(RESOURCES_TABLE, {"user_id": self.user_id})
        return [Resource.model_validate(row) for row in rows]

    def build_drafts(self, rule: AutomationRule, resources: list[Resource]) -> list[OperationDraft]:
        """Queued operation rows for every resource matching the rule."""
        return [
            OperationDraft(
                user_id=self.user_id,
                resource_id=resource.id,
                operation=rule.action,
                params=build_operation_params(rule),
                created_at=self.now,
                updated_at=self.now,
            )
            for resource in filter_resources(resources, rule.match)
        ]

    async def enforce(self) -> EnforcementResult:
        """Run one enforcement pass.

        Returns:
            EnforcementResult with the number of rules evaluated, the number
            of operations queued and one RunOutcome per rule

        Raises:
            StoreError: If rules or resources cannot be loaded
        """
        logger.info(f"Starting automation enforcement for user {self.user_id}")

        rules = await self.load_enabled_rules()
        if not rules:
            await self.activity.record("automation_enforcer", "No enabled rules to enforce")
            logger.info(f"No enabled rules for user {self.user_id}")
            return EnforcementResult(message="No enabled rules")

        resources = await self.load_resources()
        logger.info(
            f"Evaluating {len(rules)} rule(s) against {len(resources)} resource(s) "
            f"for user {self.user_id}"
        )

        runs: list[RunOutcome] = []
        total_queued = 0
        for rule in rules:
            outcome = await self.enforce_rule(rule, resources)
            runs.append(outcome)
            total_queued += outcome.count

        await self.activity.record(
            "automation_enforcer",
            f"Processed {len(rules)} rule(s); queued {total_queued} operation(s)",
        )
        logger.info(
            f"Automation enforcement complete for user {self.user_id}: "
            f"{len(rules)} rule(s), {total_queued} operation(s) queued"
        )

        return EnforcementResult(
            message="Automation enforcement complete",
            rules=len(rules),
            queued=total_queued,
            runs=runs,
        )

    async def enforce_rule(self, rule: AutomationRule, resources: list[Resource]) -> RunOutcome:
        """Enqueue operations for one rule and record the run."""
        drafts = self.build_drafts(rule, resources)

        if not drafts:
            outcome = RunOutcome(rule_id=rule.id, status="success", count=0)
        else:
            try:
                inserted = await self.store.insert(
                    OPERATIONS_TABLE, [d.model_dump(mode="json") for d in drafts]
                )
            except StoreError as e:
                logger.warning(f"Rule {rule.id} ({rule.name}) failed to enqueue operations: {e}")
                outcome = RunOutcome(rule_id=rule.id, status="error", count=0, error=e.message)
            else:
                outcome = RunOutcome(rule_id=rule.id, status="success", count=len(inserted))

        logger.debug(f"Rule {rule.id} matched {len(drafts)} resource(s), queued {outcome.count}")

        await self.record_run(rule, outcome)
        await self.activity.record(
            "rule_run",
            f'Rule "{rule.name}" enqueued {outcome.count} operation(s)',
            status=outcome.status,
        )
        return outcome

    async def record_run(self, rule: AutomationRule, outcome: RunOutcome) -> None:
        """Write the automation_rule_runs row for this evaluation."""
        details = {"queued": outcome.count} if outcome.status == "success" else {"error": outcome.error}
        run = AutomationRuleRun(
            rule_id=rule.id,
            user_id=self.user_id,
            started_at=self.now,
            finished_at=self.now,
            status=outcome.status,
            details=details,
        )
        try:
            await self.store.insert(RULE_RUNS_TABLE, run.model_dump(mode="json"), returning=False)
        except StoreResponseError as e:
            logger.warning(f"Run record for rule {rule.id} not written: {e}")
