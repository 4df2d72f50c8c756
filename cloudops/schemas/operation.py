"""Queued operation and recommendation action schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueueStatus(str, Enum):
    """Lifecycle shared by operations and recommendation actions.

    Status only moves forward: queued -> running -> success | error.
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class Operation(BaseModel):
    """Resource lifecycle operation awaiting execution."""

    model_config = ConfigDict(extra="allow")

    id: str | int
    user_id: str | None = None
    resource_id: str | int | None = None
    operation: str = ""
    params: dict[str, Any] = Field(default_factory=dict)
    status: str = QueueStatus.QUEUED.value
    result: dict[str, Any] | None = None

    @field_validator("operation", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("params", mode="before")
    @classmethod
    def none_as_empty_map(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


class RecommendationAction(BaseModel):
    """Request to apply a recommendation."""

    model_config = ConfigDict(extra="allow")

    id: str | int
    user_id: str | None = None
    recommendation_id: str | int | None = None
    status: str = QueueStatus.QUEUED.value
    result: dict[str, Any] | None = None


class OperationResult(BaseModel):
    """Outcome recorded on a finished operation."""

    ok: bool = True
    details: str


class DrainResult(BaseModel):
    """Aggregate counts for one queue drain."""

    message: str = "Queue processed"
    operations: int = 0
    recommendation_actions: int = 0
