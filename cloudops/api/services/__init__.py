"""API services module."""

from cloudops.api.services.account_service import AccountLinker, AccountValidationError
from cloudops.api.services.queue_processor import QueueProcessor
from cloudops.api.services.recommendation_service import RecommendationGenerator
from cloudops.api.services.rule_enforcer import RuleEnforcer

__all__ = [
    "AccountLinker",
    "AccountValidationError",
    "QueueProcessor",
    "RecommendationGenerator",
    "RuleEnforcer",
]
