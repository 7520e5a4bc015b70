"""Pydantic schemas for login, registration and the current user."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["admin", "viewer"]


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)
    role: Optional[Role] = None


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    role: Role


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserRead


class RegisterResponse(BaseModel):
    message: str
    user: UserRead
