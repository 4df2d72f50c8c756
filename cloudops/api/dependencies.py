"""Shared request dependencies."""

import json
import logging
from typing import Any

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

NOT_FOUND = "Not found"


async def get_json_body(request: Request) -> dict[str, Any]:
    """Request body as a JSON object; empty, malformed or non-object bodies read as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Ignoring malformed JSON request body")
        return {}
    return body if isinstance(body, dict) else {}


def not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
