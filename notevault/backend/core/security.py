"""
Security Utilities.

Bearer token helpers. The authenticated owner of every note query is the
`sub` claim of a signed access token.
"""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from notevault.backend.core.config import get_app_config, get_settings
from notevault.backend.core.exceptions import AuthenticationError
from notevault.backend.core.logging import get_logger
from notevault.backend.core.utils import utc_now

logger = get_logger(__name__)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode, normally {"sub": owner_id}
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    to_encode = data.copy()

    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=jwt_config.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access", "aud": jwt_config.audience})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")


def owner_from_token(token: str) -> str:
    """
    Resolve the owner ID carried by an access token.

    Raises:
        AuthenticationError: If the token is invalid or is not an access
            token with a subject
    """
    payload = decode_token(token)
    owner_id = payload.get("sub")
    if payload.get("type") != "access" or not owner_id:
        raise AuthenticationError("Invalid or expired token")
    return str(owner_id)
