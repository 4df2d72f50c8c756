"""Pydantic schemas module."""

from cloudops.schemas.account import LinkAccountResponse, LinkedAccount
from cloudops.schemas.activity import ActivityLogEntry
from cloudops.schemas.automation import (
    AutomationRule,
    AutomationRuleRun,
    EnforcementResult,
    OperationDraft,
    RunOutcome,
)
from cloudops.schemas.operation import (
    DrainResult,
    Operation,
    OperationResult,
    QueueStatus,
    RecommendationAction,
)
from cloudops.schemas.recommendation import (
    ALL_MODES,
    GenerationResult,
    RecommendationDraft,
    RecommendationMode,
)
from cloudops.schemas.resource import Resource

__all__ = [
    # Accounts
    "LinkedAccount",
    "LinkAccountResponse",
    # Activity
    "ActivityLogEntry",
    # Automation
    "AutomationRule",
    "AutomationRuleRun",
    "EnforcementResult",
    "OperationDraft",
    "RunOutcome",
    # Queue
    "DrainResult",
    "Operation",
    "OperationResult",
    "QueueStatus",
    "RecommendationAction",
    # Recommendations
    "ALL_MODES",
    "GenerationResult",
    "RecommendationDraft",
    "RecommendationMode",
    # Resources
    "Resource",
]
