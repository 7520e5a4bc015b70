"""Auth tests — login, registration, token checks, role gating.

Learn: These use `unauthenticated_client`, so every request goes through
the real JWT pipeline. Tests cover:
1. Login with the demo accounts → token + user
2. Bad credentials / missing / invalid tokens
3. Registration, duplicate prevention, admin-only admin creation
4. The retry endpoint's admin gate with real tokens
"""

import pytest

from procmon.auth.jwt import create_access_token


async def _login(client, username, password):
    r = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(unauthenticated_client):
    """Login with valid credentials returns a token and the user."""
    body = await _login(unauthenticated_client, "admin", "admin123")
    assert body["message"] == "Login successful"
    assert body["token"]
    assert body["user"]["username"] == "admin"
    assert body["user"]["role"] == "admin"
    assert "password_hash" not in body["user"]


@pytest.mark.asyncio
async def test_login_is_case_insensitive_on_username(unauthenticated_client):
    body = await _login(unauthenticated_client, "Viewer", "viewer123")
    assert body["user"]["role"] == "viewer"


@pytest.mark.asyncio
async def test_login_wrong_password(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/auth/login", json={"username": "admin", "password": "nope"}
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_user(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/auth/login", json={"username": "ghost", "password": "whatever"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_missing_field_is_400(unauthenticated_client):
    r = await unauthenticated_client.post("/api/auth/login", json={"username": "admin"})
    assert r.status_code == 400
    assert r.json()["message"] == "Validation error"


# ═══════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(unauthenticated_client):
    body = await _login(unauthenticated_client, "viewer", "viewer123")
    r = await unauthenticated_client.get("/api/auth/me", headers=_bearer(body["token"]))
    assert r.status_code == 200
    assert r.json()["username"] == "viewer"


@pytest.mark.asyncio
async def test_processes_require_token(unauthenticated_client):
    r = await unauthenticated_client.get("/api/processes")
    assert r.status_code == 401
    assert r.json()["message"] == "Access token required"
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_processes_reject_garbage_token(unauthenticated_client):
    r = await unauthenticated_client.get("/api/processes", headers=_bearer("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["message"].startswith("Invalid token")


@pytest.mark.asyncio
async def test_expired_token_rejected(unauthenticated_client):
    token = create_access_token(1, "admin", "admin", expires_minutes=-1)
    r = await unauthenticated_client.get("/api/processes", headers=_bearer(token))
    assert r.status_code == 401
    assert r.json()["message"] == "Token has expired"


@pytest.mark.asyncio
async def test_processes_with_token(unauthenticated_client, store):
    body = await _login(unauthenticated_client, "viewer", "viewer123")
    r = await unauthenticated_client.get("/api/processes", headers=_bearer(body["token"]))
    assert r.status_code == 200
    assert r.json()["pagination"]["totalItems"] == len(store)


# ═══════════════════════════════════════════════════════════
# Role gating
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_viewer_token_cannot_retry(unauthenticated_client):
    body = await _login(unauthenticated_client, "viewer", "viewer123")
    r = await unauthenticated_client.post("/api/processes/2/retry", headers=_bearer(body["token"]))
    assert r.status_code == 403
    assert r.json()["message"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_admin_token_can_retry(unauthenticated_client):
    body = await _login(unauthenticated_client, "admin", "admin123")
    r = await unauthenticated_client.post("/api/processes/2/retry", headers=_bearer(body["token"]))
    assert r.status_code == 200
    assert r.json()["newProcess"]["status"] == "In Progress"


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_viewer(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/auth/register",
        json={"username": "ops.jane", "email": "jane@example.com", "password": "s3cret!"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["role"] == "viewer"

    login = await _login(unauthenticated_client, "ops.jane", "s3cret!")
    assert login["user"]["email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_username(unauthenticated_client):
    payload = {"username": "dupe", "email": "dupe@example.com", "password": "password1"}
    r1 = await unauthenticated_client.post("/api/auth/register", json=payload)
    assert r1.status_code == 201
    r2 = await unauthenticated_client.post("/api/auth/register", json=payload)
    assert r2.status_code == 409


@pytest.mark.asyncio
async def test_register_short_password(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/auth/register",
        json={"username": "shorty", "email": "s@example.com", "password": "abc"},
    )
    assert r.status_code == 400
    assert "password" in r.json()["details"]


@pytest.mark.asyncio
async def test_register_admin_requires_admin(unauthenticated_client):
    payload = {"username": "boss", "email": "boss@example.com", "password": "password1", "role": "admin"}
    r = await unauthenticated_client.post("/api/auth/register", json=payload)
    assert r.status_code == 403

    admin = await _login(unauthenticated_client, "admin", "admin123")
    r = await unauthenticated_client.post(
        "/api/auth/register", json=payload, headers=_bearer(admin["token"])
    )
    assert r.status_code == 201
    assert r.json()["user"]["role"] == "admin"
