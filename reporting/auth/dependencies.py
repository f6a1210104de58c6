"""
FastAPI dependencies for authentication and reporting visibility.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from reporting.auth.jwt import decode_viewer_token
from reporting.engine.access import Viewer
from reporting.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_viewer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Viewer:
    """
    Extract the calling user from the bearer token.

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        logger.warning("auth_failed", reason="missing_token")
        raise _unauthorized("Missing authentication token")

    try:
        viewer = decode_viewer_token(credentials.credentials)
    except JWTError as e:
        logger.warning("auth_failed", reason="invalid_token", error=str(e))
        raise _unauthorized("Invalid or expired token")

    logger.debug("auth_success", user_id=viewer.user_id, role=viewer.role.value)
    return viewer


async def require_admin(viewer: Viewer = Depends(get_current_viewer)) -> Viewer:
    """Only admins may create, edit or post reports."""
    if not viewer.is_admin:
        logger.warning("auth_forbidden", user_id=viewer.user_id, role=viewer.role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return viewer
