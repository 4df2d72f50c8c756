"""Cloud account linking service.

Validates per-provider credential payloads, then stores:

- ``cloud_accounts``: provider, name, account id and masked, non-secret metadata
- ``cloud_credentials``: the secret fields, encrypted when a key is configured
- an ``activity_log`` entry

Validation happens before any store access.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from cloudops.core.audit import ActivityLog, utc_now_iso
from cloudops.core.crypto import seal_secret
from cloudops.core.store import RowStore
from cloudops.schemas.account import LinkedAccount

logger = logging.getLogger(__name__)

ACCOUNTS_TABLE = "cloud_accounts"
CREDENTIALS_TABLE = "cloud_credentials"


class AccountValidationError(ValueError):
    """The link request is missing or has invalid credential fields."""


@dataclass
class ValidatedCredentials:
    """Normalized result of validating a link request."""

    provider: str
    account_id: str
    metadata: dict[str, Any] = field(default_factory=dict)
    secret: dict[str, Any] = field(default_factory=dict)


def mask_key(value: Any) -> str:
    """Keep the first four characters of a key."""
    if not value:
        return ""
    s = str(value)
    return "***" if len(s) <= 4 else s[:4] + "****"


def mask_id(value: Any) -> str:
    """Keep the first and last three characters of an identifier."""
    if not value:
        return ""
    s = str(value)
    return "***" if len(s) <= 6 else s[:3] + "***" + s[-3:]


def _validate_aws(payload: dict[str, Any], now: str) -> ValidatedCredentials:
    access_key_id = payload.get("access_key_id")
    secret_access_key = payload.get("secret_access_key")
    account_id = payload.get("account_id")
    if not access_key_id or not secret_access_key or not account_id:
        raise AccountValidationError(
            "Missing AWS credentials: access_key_id, secret_access_key, account_id"
        )

    return ValidatedCredentials(
        provider="AWS",
        account_id=str(account_id),
        metadata={"key_prefix": mask_key(access_key_id)},
        secret={
            "access_key_id": access_key_id,
            "secret_access_key": secret_access_key,
            "account_id": str(account_id),
            "linked_at": now,
        },
    )


def _validate_azure(payload: dict[str, Any], now: str) -> ValidatedCredentials:
    tenant_id = payload.get("tenant_id")
    client_id = payload.get("client_id")
    client_secret = payload.get("client_secret")
    subscription_id = payload.get("subscription_id")
    if not tenant_id or not client_id or not client_secret or not subscription_id:
        raise AccountValidationError(
            "Missing Azure credentials: tenant_id, client_id, client_secret, subscription_id"
        )

    return ValidatedCredentials(
        provider="AZURE",
        account_id=str(subscription_id),
        metadata={"tenant_id": mask_id(tenant_id), "client_id": mask_key(client_id)},
        secret={
            "tenant_id": tenant_id,
            "client_id": client_id,
            "client_secret": client_secret,
            "subscription_id": subscription_id,
            "linked_at": now,
        },
    )


def _validate_gcp(payload: dict[str, Any], now: str) -> ValidatedCredentials:
    raw = payload.get("service_account_json")
    if not raw or not isinstance(raw, str):
        raise AccountValidationError(
            "Missing GCP credentials: service_account_json (stringified JSON)"
        )

    try:
        service_account = json.loads(raw)
    except json.JSONDecodeError:
        raise AccountValidationError("Invalid GCP service account JSON")

    if not isinstance(service_account, dict) or not all(
        service_account.get(k) for k in ("project_id", "client_email", "private_key")
    ):
        raise AccountValidationError(
            "GCP service account JSON missing project_id, client_email, or private_key"
        )

    return ValidatedCredentials(
        provider="GCP",
        account_id=str(service_account["project_id"]),
        metadata={"client_email": service_account["client_email"]},
        secret={"service_account_json": service_account, "linked_at": now},
    )


VALIDATORS = {
    "AWS": _validate_aws,
    "AZURE": _validate_azure,
    "GCP": _validate_gcp,
}


def validate_link_request(payload: dict[str, Any], now: str) -> ValidatedCredentials:
    """Check a link request and split it into public metadata and secrets.

    Raises:
        AccountValidationError: With the message returned to the caller
    """
    if not payload.get("provider") or not payload.get("name"):
        raise AccountValidationError("provider and name are required")

    provider = str(payload["provider"]).upper()
    validator = VALIDATORS.get(provider)
    if validator is None:
        raise AccountValidationError("Unsupported provider. Use AWS, Azure, or GCP.")
    return validator(payload, now)


class AccountLinker:
    """Service linking cloud accounts for one principal."""

    def __init__(self, store: RowStore, user_id: str, now: str | None = None):
        self.store = store
        self.user_id = user_id
        self.now = now or utc_now_iso()
        self.activity = ActivityLog(store, actor=user_id, now=self.now)

    async def link(self, payload: dict[str, Any]) -> LinkedAccount:
        """Validate and persist a cloud account link.

        Args:
            payload: Request body with provider, name and provider-specific fields

        Returns:
            LinkedAccount without any secret fields

        Raises:
            AccountValidationError: On missing or invalid fields
            StoreError: If either row cannot be written
        """
        credentials = validate_link_request(payload, self.now)
        name = payload["name"]
        # Secret is sealed before the first insert.
        secret = seal_secret(credentials.secret)

        inserted = await self.store.insert(
            ACCOUNTS_TABLE,
            {
                "user_id": self.user_id,
                "provider": credentials.provider,
                "name": name,
                "account_id": credentials.account_id,
                "status": "connected",
                "metadata": credentials.metadata,
                "created_at": self.now,
            },
        )
        account_pk = inserted[0].get("id") if inserted else None

        await self.store.insert(
            CREDENTIALS_TABLE,
            {
                "user_id": self.user_id,
                "cloud_account_id": account_pk,
                "provider": credentials.provider,
                "secret": secret,
                "created_at": self.now,
            },
        )

        await self.activity.record(
            "link_account",
            f'Linked {credentials.provider} account "{name}" ({credentials.account_id})',
        )
        logger.info(
            f"Linked {credentials.provider} account {credentials.account_id} for user {self.user_id}"
        )

        return LinkedAccount(
            id=account_pk,
            provider=credentials.provider,
            name=str(name),
            account_id=credentials.account_id,
            status="connected",
            metadata=credentials.metadata,
        )
