"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the Bearer token.

- get_current_user_optional: None when no token is sent
- get_current_user: 401 when no (valid) token is sent
- require_role("admin"): 403 unless the user has one of the roles
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from procmon.auth.jwt import TokenError, verify_token


class CurrentIdentity:
    """Represents the authenticated user making the request.

    Learn: Built straight from the token claims — no directory lookup —
    so a token stays valid for its lifetime even across restarts.
    """

    def __init__(self, user_id: int, username: str, role: str = "viewer"):
        self.user_id = user_id
        self.username = username
        self.role = role

    def has_role(self, *roles: str) -> bool:
        return self.role in roles


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no auth)."""
    if authorization and authorization.startswith("Bearer "):
        return authenticate_token(authorization[7:])
    return None


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth)."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def require_role(*roles: str):
    """Build a dependency that only lets the given roles through.

    Usage: Depends(require_role("admin"))
    """

    async def _check(
        identity: CurrentIdentity = Depends(get_current_user),
    ) -> CurrentIdentity:
        if not identity.has_role(*roles):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return identity

    return _check


def authenticate_token(token: str) -> CurrentIdentity:
    """Authenticate via JWT token (also used by the WebSocket handshake)."""
    try:
        payload = verify_token(token)
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentIdentity(
        user_id=int(payload["sub"]),
        username=payload.get("username", ""),
        role=payload.get("role", "viewer"),
    )
