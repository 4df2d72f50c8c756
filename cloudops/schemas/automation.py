"""Automation rule and enforcement schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AutomationRule(BaseModel):
    """User-defined rule: a tag query plus the action to enqueue."""

    model_config = ConfigDict(extra="allow")

    id: str | int
    user_id: str | None = None
    name: str = ""
    match: str = ""
    action: str = ""
    status: str = "enabled"

    @field_validator("name", "match", "action", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class OperationDraft(BaseModel):
    """Operation row to be inserted with status ``queued``."""

    user_id: str
    resource_id: str | int | None
    operation: str
    params: dict[str, Any] = Field(default_factory=dict)
    status: Literal["queued"] = "queued"
    created_at: str
    updated_at: str


class AutomationRuleRun(BaseModel):
    """One enforcement evaluation of one rule."""

    rule_id: str | int
    user_id: str
    started_at: str
    finished_at: str
    status: Literal["success", "error"]
    details: dict[str, Any]


class RunOutcome(BaseModel):
    """Per-rule result surfaced in the enforcement response."""

    rule_id: str | int
    status: Literal["success", "error"]
    count: int = 0
    error: str | None = None


class EnforcementResult(BaseModel):
    """Aggregate result of one enforcement pass."""

    message: str
    rules: int = 0
    queued: int = 0
    runs: list[RunOutcome] = Field(default_factory=list)
