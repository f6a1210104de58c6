"""JWT authentication module."""

from reporting.auth.dependencies import get_current_viewer, require_admin
from reporting.auth.jwt import create_viewer_token, decode_viewer_token

__all__ = ["create_viewer_token", "decode_viewer_token", "get_current_viewer", "require_admin"]
