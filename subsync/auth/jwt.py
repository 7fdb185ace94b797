"""Session token handling for identity-provider issued JWTs."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from subsync.config import get_settings
from subsync.models import TokenData


def create_session_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token.

    Production tokens come from the identity provider; this is used by
    tests and local tooling.

    Args:
        data: Token claims, must include ``sub``
        expires_delta: Token lifetime, 30 minutes by default

    Returns:
        Encoded JWT token
    """
    settings = get_settings()

    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.session_secret_key.get_secret_value(),
        algorithm=settings.session_algorithm,
    )


def decode_session_token(token: str) -> TokenData | None:
    """
    Decode and validate a session token.

    Args:
        token: JWT token string

    Returns:
        TokenData if valid, None if invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.session_secret_key.get_secret_value(),
            algorithms=[settings.session_algorithm],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    return TokenData(
        sub=user_id,
        email=payload.get("email"),
        name=payload.get("name"),
        picture=payload.get("picture"),
    )
