"""FastAPI dependencies for session authentication."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from subsync.auth.jwt import decode_session_token
from subsync.models import TokenData

bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token_data(
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenData | None:
    """Extract and validate bearer token."""
    if not bearer:
        return None

    return decode_session_token(bearer.credentials)


async def get_current_user(
    token_data: TokenData | None = Depends(get_bearer_token_data),
) -> TokenData:
    """Get the authenticated user or fail with 401."""
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_data


CurrentUser = Annotated[TokenData, Depends(get_current_user)]
