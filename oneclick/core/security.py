"""Session token handling.

A session token is issued once the identity provider has vouched for a
user. It carries the provider user fields so later requests can rebuild the
identity session without calling the provider again.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from oneclick.config import settings
from oneclick.schemas.users import ProviderUser


def create_session_token(
    user: ProviderUser,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token for a provider user.

    Args:
        user: User reported by the identity provider
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.session_token_expire_minutes))

    to_encode: dict[str, Any] = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "picture": user.image_url,
        "exp": expire,
        "iat": now,
        "type": "session",
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_session_token(token: str) -> ProviderUser | None:
    """
    Decode and validate a session token.

    Args:
        token: JWT token to decode

    Returns:
        Provider user carried by the token, or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "session" or not isinstance(payload.get("sub"), str):
        return None

    return ProviderUser(
        id=payload["sub"],
        email=payload.get("email") or "",
        name=payload.get("name"),
        image_url=payload.get("picture"),
    )
