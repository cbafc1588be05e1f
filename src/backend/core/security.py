"""Identity token handling.

Sign-up, login and credential management live in the external identity
provider. The backend only verifies the bearer tokens it issues (shared
SECRET_KEY) and reads the profile id from the `sub` claim.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from core.config import settings

# Token issuer and audience for validation
TOKEN_ISSUER = "sliich-identity"
TOKEN_AUDIENCE = "sliich-api"


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token for a profile id.

    Production tokens come from the identity provider; this mirrors its
    claim layout for local tooling and tests.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": now,
        "type": "access",
        "iss": TOKEN_ISSUER,
        "aud": TOKEN_AUDIENCE,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, expected_type: str | None = "access") -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode
        expected_type: If provided, validates the token type matches

    Returns:
        The decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
            audience=TOKEN_AUDIENCE,
        )
        if expected_type and payload.get("type") != expected_type:
            return None
        return payload
    except JWTError:
        return None


def resolve_profile_id(token: str | None) -> str | None:
    """Return the profile id carried by a valid token, else None."""
    if not token:
        return None
    payload = decode_token(token)
    if payload is None:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
