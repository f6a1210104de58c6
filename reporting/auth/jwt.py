"""
Viewer tokens for the reporting API.

A token carries what the visibility rules need and nothing else: the user id
as ``sub``, the display name, the role and the two reporting access claims.
Accounts are managed by the surrounding application; it mints tokens with
create_viewer_token and this service only ever turns them back into a Viewer.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from reporting.config import get_settings
from reporting.engine.access import Viewer

# Viewer attributes carried as claims next to sub
VIEWER_CLAIMS = ("name", "role", "has_reporting_access", "reporting_categories")


def create_viewer_token(viewer: Viewer, expires_delta: Optional[timedelta] = None) -> str:
    """
    Encode a viewer as a signed access token.

    Args:
        viewer: Caller whose identity and reporting access the token grants
        expires_delta: Lifetime override; defaults to JWT_EXPIRATION_MINUTES

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)

    claims = viewer.model_dump(mode="json", include=set(VIEWER_CLAIMS))
    claims.update({"sub": viewer.user_id, "iat": now, "exp": now + lifetime, "type": "access"})

    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_viewer_token(token: str) -> Viewer:
    """
    Verify a token and rebuild the viewer it was issued for.

    Claims that are absent fall back to the Viewer defaults, so a token
    without reporting claims grants no reporting categories. sub and role
    are mandatory.

    Raises:
        JWTError: If the signature, expiry, token type or viewer claims are invalid
    """
    settings = get_settings()
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")
    if not payload.get("sub"):
        raise JWTError("Token has no subject")

    claims = {key: payload[key] for key in VIEWER_CLAIMS if payload.get(key) is not None}
    try:
        return Viewer(user_id=payload["sub"], **claims)
    except ValidationError as e:
        raise JWTError(f"Invalid viewer claims: {e.error_count()} error(s)") from e
