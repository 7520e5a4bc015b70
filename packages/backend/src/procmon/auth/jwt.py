"""Access tokens for the dashboard API and WebSocket.

Learn: Tokens are stateless HS256 JWTs. The claims carry everything a
request needs to be authorized: `sub` (user id), `username` and `role`,
so neither the API nor the socket handshake looks the user up again.
Tokens are valid for PROCMON_ACCESS_TOKEN_EXPIRE_MINUTES (a day by
default); there are no refresh tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from procmon.config import settings

TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "exp", "iat"]


class TokenError(Exception):
    """The token is expired, malformed, or not an access token."""


def create_access_token(
    user_id: int,
    username: str,
    role: str,
    expires_minutes: Optional[int] = None,
) -> str:
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "type": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Decode a token and return its claims, or raise TokenError."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if claims.get("type") != TOKEN_TYPE:
        raise TokenError("Invalid token: not an access token")
    return claims
