"""Field-level encryption for cloud credential secrets.

Uses Fernet symmetric encryption from the `cryptography` package.
The key is sourced from the ENCRYPTION_KEY env var.

Without a key, development stores secrets in plaintext; production refuses.

`seal_secret` is the write side used when an account is linked. `open_secret`
is its read-side counterpart for whatever later loads a `cloud_credentials`
row (provider calls replacing the simulated operations); it accepts both
sealed and plaintext rows.
"""

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from cloudops.core.config import get_settings

logger = logging.getLogger(__name__)

_fernet: Fernet | None = None
_NO_KEY_WARNING_EMITTED = False


def _get_fernet() -> Fernet | None:
    """Lazy-init the Fernet instance from the configured key."""
    global _fernet, _NO_KEY_WARNING_EMITTED
    if _fernet is not None:
        return _fernet

    settings = get_settings()
    key = settings.encryption_key

    if not key:
        if settings.is_production:
            raise RuntimeError(
                "ENCRYPTION_KEY must be set in production. "
                "Generate one with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
        if not _NO_KEY_WARNING_EMITTED:
            logger.warning(
                "ENCRYPTION_KEY not set: cloud credentials will be stored in plaintext. "
                "This is acceptable for local development only."
            )
            _NO_KEY_WARNING_EMITTED = True
        return None

    try:
        _fernet = Fernet(key.encode())
    except ValueError as exc:
        raise RuntimeError(f"Invalid ENCRYPTION_KEY: {exc}") from exc

    return _fernet


def reset_cipher() -> None:
    """Forget the cached cipher so the next call re-reads settings."""
    global _fernet, _NO_KEY_WARNING_EMITTED
    _fernet = None
    _NO_KEY_WARNING_EMITTED = False


def is_encryption_enabled() -> bool:
    return bool(get_settings().encryption_key)


def seal_secret(payload: dict[str, Any]) -> dict[str, Any]:
    """Prepare a secret payload for storage.

    Returns ``{"ciphertext": <token>}`` when a key is configured, otherwise
    the payload unchanged.
    """
    f = _get_fernet()
    if f is None:
        return payload
    token = f.encrypt(json.dumps(payload).encode()).decode()
    return {"ciphertext": token}


def open_secret(stored: dict[str, Any]) -> dict[str, Any]:
    """Inverse of ``seal_secret``; plaintext rows are returned as-is."""
    ciphertext = stored.get("ciphertext") if isinstance(stored, dict) else None
    if not ciphertext:
        return stored

    f = _get_fernet()
    if f is None:
        raise RuntimeError("Encrypted credential found but ENCRYPTION_KEY is not set")
    try:
        return json.loads(f.decrypt(ciphertext.encode()).decode())
    except InvalidToken as exc:
        raise RuntimeError("Credential could not be decrypted with the configured key") from exc
