"""Auth API — login, registration, current user.

Learn: Routes for the dashboard's authentication flow:
- POST /auth/login → username/password → JWT access token + user
- POST /auth/register → create a user (admins only may create admins)
- GET /auth/me → current user info from the token
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException

from procmon.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
)
from procmon.auth.jwt import create_access_token
from procmon.auth.users import DuplicateUserError, User, UserDirectory, get_user_directory
from procmon.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/auth")


def _user_read(user: User) -> UserRead:
    return UserRead(id=user.id, username=user.username, email=user.email, role=user.role)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    users: UserDirectory = Depends(get_user_directory),
):
    """Login with username and password → JWT access token."""
    user = users.authenticate(body.username, body.password)
    if not user:
        logger.info("auth.login_failed", username=body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id, user.username, user.role)
    logger.info("auth.login", username=user.username, role=user.role)
    return LoginResponse(message="Login successful", token=token, user=_user_read(user))


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    users: UserDirectory = Depends(get_user_directory),
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
):
    """Create a new user account.

    Anyone may register a viewer; creating an admin needs an admin token.
    """
    role = body.role or "viewer"
    if role == "admin" and not (identity and identity.has_role("admin")):
        raise HTTPException(status_code=403, detail="Only admins can create admin users")

    try:
        user = users.add(body.username, body.email, body.password, role=role)
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info("auth.registered", username=user.username, role=user.role)
    return RegisterResponse(message="User registered successfully", user=_user_read(user))


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    users: UserDirectory = Depends(get_user_directory),
):
    """Get the current authenticated user's info."""
    user = users.get(identity.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_read(user)
