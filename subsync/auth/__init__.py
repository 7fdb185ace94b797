"""Authentication package."""

from subsync.auth.dependencies import (
    CurrentUser,
    get_bearer_token_data,
    get_current_user,
)
from subsync.auth.jwt import create_session_token, decode_session_token

__all__ = [
    "create_session_token",
    "decode_session_token",
    "get_bearer_token_data",
    "get_current_user",
    "CurrentUser",
]
