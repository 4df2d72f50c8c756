"""Resource schemas as read from the row store."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator


def _as_number(v: Any, default: float | None) -> float | None:
    if v is None or v == "" or isinstance(v, bool):
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


class Resource(BaseModel):
    """Cloud-managed entity (VM, database, bucket...) owned by a principal.

    Typed fields are coerced leniently for the recommendation heuristics and
    never reject a row. Tag queries read the row exactly as stored through
    ``field()``.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int | None = None
    user_id: str | None = None
    type: str = ""
    provider: str = ""
    region: str = ""
    tags: dict[str, Any] = Field(default_factory=dict)
    state: str = ""
    cost_daily: float = 0.0
    cost_monthly: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    _row: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def keep_row(cls, data: Any, handler) -> "Resource":
        resource = handler(data)
        if isinstance(data, dict):
            resource._row = dict(data)
        return resource

    @field_validator("id", mode="before")
    @classmethod
    def scalar_id(cls, v: Any) -> Any:
        if v is None or (isinstance(v, (str, int)) and not isinstance(v, bool)):
            return v
        return str(v)

    @field_validator("user_id", mode="before")
    @classmethod
    def text_or_none(cls, v: Any) -> Any:
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("type", "provider", "region", "state", mode="before")
    @classmethod
    def as_text(cls, v: Any) -> str:
        if v is None or v is False:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("tags", "metadata", mode="before")
    @classmethod
    def none_as_empty_map(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("cost_daily", mode="before")
    @classmethod
    def daily_as_number(cls, v: Any) -> float:
        return _as_number(v, 0.0)

    @field_validator("cost_monthly", mode="before")
    @classmethod
    def monthly_as_number(cls, v: Any) -> float | None:
        return _as_number(v, None)

    def field(self, name: str) -> Any:
        """Column value as stored in the row; None when absent."""
        if self._row:
            return self._row.get(name)
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)
