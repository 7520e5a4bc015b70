"""
Shared helpers for procmon examples.

Handles the health check and login so each example can focus on its
specific workflow.
"""

import os
import sys

import httpx

ROOT = os.environ.get("PROCMON_API_URL", "http://localhost:5000").rstrip("/")
BASE = f"{ROOT}/api"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{ROOT}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {ROOT}")
        print("Start it with:  procmon serve --reload")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Status:    {health['status']}")
    print(f"  Processes: {health['processes']}")
    print(f"  Redis:     {health['redis']}")


def authenticate(username: str = "admin", password: str = "admin123") -> str:
    """Log in with one of the demo accounts and return an access token."""
    resp = httpx.post(
        f"{BASE}/auth/login",
        json={"username": username, "password": password},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"ERROR: Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return resp.json()["token"]


def create_client(username: str = "admin", password: str = "admin123") -> httpx.Client:
    """Check backend, authenticate, and return an httpx Client with auth headers."""
    check_backend()
    token = authenticate(username, password)
    print(f"  Auth:      ✓ ({username})")
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
