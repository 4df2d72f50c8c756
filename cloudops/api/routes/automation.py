"""Automation rule enforcement API routes."""

from fastapi import APIRouter, Depends

from cloudops.api.dependencies import not_found
from cloudops.api.services.rule_enforcer import RuleEnforcer
from cloudops.core.auth import User, get_current_user
from cloudops.core.store import RowStore, get_store
from cloudops.schemas.automation import EnforcementResult

router = APIRouter(
    prefix="/automation-enforcer",
    tags=["automation"],
)


@router.post(
    "/run",
    response_model=EnforcementResult,
    response_model_exclude_none=True,
)
async def run_enforcement(
    current_user: User = Depends(get_current_user),
    store: RowStore = Depends(get_store),
):
    """Evaluate enabled automation rules and enqueue matching operations.

    Intended for an external scheduler as well as on-demand calls.
    """
    enforcer = RuleEnforcer(store, current_user.id)
    return await enforcer.enforce()


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def enforcement_not_found(path: str):
    """Anything other than POST /run."""
    raise not_found()
