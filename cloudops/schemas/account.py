"""Cloud account linking schemas."""

from typing import Any

from pydantic import BaseModel, Field


class LinkedAccount(BaseModel):
    """Non-secret view of a linked cloud account."""

    id: str | int | None = None
    provider: str
    name: str
    account_id: str
    status: str = "connected"
    metadata: dict[str, Any] = Field(default_factory=dict)


class LinkAccountResponse(BaseModel):
    """Response after linking an account."""

    message: str = "Account linked successfully"
    account: LinkedAccount
