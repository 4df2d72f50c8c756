"""Activity log schemas."""

from typing import Literal

from pydantic import BaseModel


class ActivityLogEntry(BaseModel):
    """Audit trail row written after each unit of work."""

    actor: str
    type: str
    summary: str
    status: Literal["success", "error"] = "success"
    created_at: str
