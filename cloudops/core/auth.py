"""Principal extraction from bearer tokens.

Tokens are issued and verified by the upstream identity provider and gateway.
This service only decodes the JWT payload to read the subject claim; it does
not check the signature, so it must sit behind a gateway that does.
"""

import json
import logging
from typing import Any

from fastapi import HTTPException, Request, status
from jose.utils import base64url_decode
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class User(BaseModel):
    """Authenticated principal."""

    id: str
    email: str | None = None
    role: str | None = None


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:] or None


def decode_claims(token: str) -> dict[str, Any] | None:
    """Decode the JWT payload segment without signature verification.

    The header and signature segments are not inspected.

    Returns:
        The claims mapping, or None if the payload cannot be decoded
    """
    segments = token.split(".")
    if len(segments) < 2:
        logger.debug("Bearer token has no payload segment")
        return None
    try:
        claims = json.loads(base64url_decode(segments[1].encode("ascii")))
    except (ValueError, UnicodeError) as e:
        logger.debug(f"Undecodable bearer token payload: {e}")
        return None
    return claims if isinstance(claims, dict) else None


def get_subject(token: str | None) -> str | None:
    """Read the ``sub`` claim, or None if the token is absent or unusable."""
    if not token:
        return None
    claims = decode_claims(token)
    if not claims:
        return None
    sub = claims.get("sub")
    if sub is None or sub == "":
        return None
    return str(sub)


async def get_current_user(request: Request) -> User:
    """Dependency resolving the principal for this request.

    Raises:
        HTTPException: 401 if the token is missing or carries no subject
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    user_id = get_subject(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_claims(token) or {}
    email = claims.get("email")
    role = claims.get("role")
    return User(
        id=user_id,
        email=email if isinstance(email, str) else None,
        role=role if isinstance(role, str) else None,
    )
