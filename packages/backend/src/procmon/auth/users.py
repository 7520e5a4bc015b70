"""In-memory user directory.

Learn: Stands in for a users table. The directory is built on first use
and seeded with two demo accounts from settings — an admin (may retry
failed processes) and a read-only viewer. Registration adds to it for
the lifetime of the process.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from procmon.auth.password import hash_password, verify_password
from procmon.config import settings


class DuplicateUserError(Exception):
    """Raised when a username is already taken."""


@dataclass
class User:
    id: int
    username: str
    email: str
    role: str
    password_hash: str


class UserDirectory:
    def __init__(self):
        self._users: dict[str, User] = {}

    def __len__(self) -> int:
        return len(self._users)

    def add(self, username: str, email: str, password: str, role: str = "viewer") -> User:
        key = username.lower()
        if key in self._users:
            raise DuplicateUserError(f"Username '{username}' is already taken")
        user = User(
            id=len(self._users) + 1,
            username=username,
            email=email,
            role=role,
            password_hash=hash_password(password),
        )
        self._users[key] = user
        return user

    def get_by_username(self, username: str) -> Optional[User]:
        return self._users.get(username.lower())

    def get(self, user_id: int) -> Optional[User]:
        for user in self._users.values():
            if user.id == user_id:
                return user
        return None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when the password matches, else None."""
        user = self.get_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user


def build_demo_directory() -> UserDirectory:
    directory = UserDirectory()
    directory.add(
        settings.admin_username,
        f"{settings.admin_username}@example.com",
        settings.admin_password,
        role="admin",
    )
    directory.add(
        settings.viewer_username,
        f"{settings.viewer_username}@example.com",
        settings.viewer_password,
        role="viewer",
    )
    return directory


@lru_cache
def get_user_directory() -> UserDirectory:
    """FastAPI dependency — the shared user directory."""
    return build_demo_directory()
