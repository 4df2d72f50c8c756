"""Cloud account linking API routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from cloudops.api.dependencies import get_json_body
from cloudops.api.services.account_service import (
    AccountLinker,
    AccountValidationError,
    validate_link_request,
)
from cloudops.core.audit import utc_now_iso
from cloudops.core.auth import User, get_current_user
from cloudops.core.store import RowStore, get_store
from cloudops.schemas.account import LinkAccountResponse

router = APIRouter(
    prefix="/link-account",
    tags=["accounts"],
)


async def validated_body(body: dict[str, Any] = Depends(get_json_body)) -> dict[str, Any]:
    """Reject invalid link requests with 400 before the store is touched."""
    try:
        validate_link_request(body, utc_now_iso())
    except AccountValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return body


@router.post("", response_model=LinkAccountResponse)
@router.post("/", response_model=LinkAccountResponse, include_in_schema=False)
async def link_account(
    current_user: User = Depends(get_current_user),
    body: dict[str, Any] = Depends(validated_body),
    store: RowStore = Depends(get_store),
):
    """Link an AWS, Azure or GCP account.

    Body: ``{"provider", "name", ...}`` plus the provider's credential fields:

    - AWS: access_key_id, secret_access_key, account_id
    - Azure: tenant_id, client_id, client_secret, subscription_id
    - GCP: service_account_json (stringified JSON)
    """
    linker = AccountLinker(store, current_user.id)
    account = await linker.link(body)
    return LinkAccountResponse(account=account)
