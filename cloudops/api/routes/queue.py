"""Queue processing API routes."""

from typing import Any

from fastapi import APIRouter, Depends

from cloudops.api.dependencies import get_json_body, not_found
from cloudops.api.services.queue_processor import QueueProcessor
from cloudops.core.auth import User, get_current_user
from cloudops.core.config import get_settings
from cloudops.core.store import RowStore, get_store
from cloudops.schemas.operation import DrainResult

router = APIRouter(
    prefix="/queue-processor",
    tags=["queue"],
)


def resolve_max_items(body: dict[str, Any], default: int) -> int:
    """Per-queue batch size from ``{"max": n}``; falls back to the default."""
    raw = body.get("max")
    if isinstance(raw, bool) or not raw:
        return default
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(value, 1)


@router.post("/run", response_model=DrainResult)
async def run_queue(
    current_user: User = Depends(get_current_user),
    body: dict[str, Any] = Depends(get_json_body),
    store: RowStore = Depends(get_store),
):
    """Drain queued operations and recommendation actions.

    Body: ``{"max": n}`` (optional, per queue).
    """
    max_items = resolve_max_items(body, get_settings().queue_default_max)
    processor = QueueProcessor(store, current_user.id)
    return await processor.drain(max_items)


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def queue_not_found(path: str):
    """Anything other than POST /run."""
    raise not_found()
