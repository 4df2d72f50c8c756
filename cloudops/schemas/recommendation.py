"""Recommendation generation schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RecommendationMode(str, Enum):
    """Analysis passes the generator can run."""

    IDLE = "idle"
    RIGHTSIZING = "rightsizing"
    ANOMALY = "anomaly"


ALL_MODES = [mode.value for mode in RecommendationMode]


class RecommendationDraft(BaseModel):
    """Candidate recommendation row."""

    user_id: str
    resource_id: str | int | None = None
    title: str
    reason: str
    priority: int
    impact: float
    provider: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str


class GenerationResult(BaseModel):
    """Result of one generator run."""

    message: str = "Recommendations generated"
    inserted: int = 0
    modes: list[Any] = Field(default_factory=list)
