"""
User endpoint tests: registration, login, and the authenticated user's
own account (``/api/user``), including token handling.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_user(async_client: AsyncClient):
    """Registering returns 200 with the user and a token."""
    resp = await async_client.post("/api/users", json={
        "user": {"email": "germione@prisma.com", "username": "germione", "password": "pass"},
    })
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["email"] == "germione@prisma.com"
    assert user["username"] == "germione"
    assert user["bio"] is None
    assert user["image"] is None
    assert user["token"]
    assert "password" not in user


@pytest.mark.asyncio
async def test_register_missing_username(async_client: AsyncClient):
    resp = await async_client.post("/api/users", json={
        "user": {"email": "nouser@prisma.com", "password": "pass"},
    })
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"username": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_register_reports_email_first(async_client: AsyncClient):
    """With every field missing only the first one (email) is reported."""
    resp = await async_client.post("/api/users", json={"user": {}})
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"email": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_register_blank_password(async_client: AsyncClient):
    resp = await async_client.post("/api/users", json={
        "user": {"email": "blank@prisma.com", "username": "blank", "password": ""},
    })
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"password": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_register_missing_envelope(async_client: AsyncClient):
    resp = await async_client.post("/api/users", json={"email": "flat@prisma.com"})
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"user": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client: AsyncClient, register):
    """A second registration with the same email is a conflict; the first user still works."""
    await register("germione", email="same@prisma.com", password="first")

    resp = await async_client.post("/api/users", json={
        "user": {"email": "same@prisma.com", "username": "other", "password": "second"},
    })
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"email": ["has already been taken"]}}

    login = await async_client.post("/api/users/login", json={
        "user": {"email": "same@prisma.com", "password": "first"},
    })
    assert login.status_code == 200
    assert login.json()["user"]["username"] == "germione"


@pytest.mark.asyncio
async def test_register_duplicate_username(async_client: AsyncClient, register):
    await register("germione")
    resp = await async_client.post("/api/users", json={
        "user": {"email": "new@prisma.com", "username": "germione", "password": "pass"},
    })
    assert resp.status_code == 409
    assert "username" in resp.json()["errors"]


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login(async_client: AsyncClient, register):
    await register("germione")
    resp = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com", "password": "passeword"},
    })
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["username"] == "germione"
    assert user["token"]


@pytest.mark.asyncio
async def test_login_ignores_username(async_client: AsyncClient, register):
    await register("germione")
    resp = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com", "username": "whatever", "password": "passeword"},
    })
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "germione"


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, register):
    await register("germione")
    resp = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com", "password": "nope"},
    })
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"password": ["is invalid"]}}


@pytest.mark.asyncio
async def test_login_unknown_email(async_client: AsyncClient):
    resp = await async_client.post("/api/users/login", json={
        "user": {"email": "ghost@prisma.com", "password": "pass"},
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_login_missing_password(async_client: AsyncClient):
    resp = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com"},
    })
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"password": ["can't be blank"]}}


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_current_user(async_client: AsyncClient, register):
    headers = await register("germione")
    resp = await async_client.get("/api/user", headers=headers)
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["username"] == "germione"
    # The token presented is echoed back.
    assert headers["Authorization"] == f"Token {user['token']}"


@pytest.mark.asyncio
async def test_get_current_user_accepts_bearer(async_client: AsyncClient, register):
    headers = await register("germione")
    token = headers["Authorization"].split(" ", 1)[1]
    resp = await async_client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_get_current_user_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/user")
    assert resp.status_code == 401
    assert resp.json() == {"errors": {"token": ["is missing"]}}


@pytest.mark.asyncio
async def test_get_current_user_rejects_bad_token(async_client: AsyncClient):
    resp = await async_client.get("/api/user", headers={"Authorization": "Token not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json() == {"errors": {"token": ["is not valid"]}}


@pytest.mark.asyncio
async def test_get_current_user_rejects_unknown_scheme(async_client: AsyncClient, register):
    headers = await register("germione")
    token = headers["Authorization"].split(" ", 1)[1]
    resp = await async_client.get("/api/user", headers={"Authorization": f"Basic {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_update_current_user(async_client: AsyncClient, register):
    headers = await register("germione")
    resp = await async_client.put("/api/user", headers=headers, json={
        "user": {"bio": "I like fish", "image": "https://img/g.png", "password": "newpass"},
    })
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["bio"] == "I like fish"
    assert user["image"] == "https://img/g.png"
    assert user["username"] == "germione"

    old = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com", "password": "passeword"},
    })
    assert old.status_code == 403
    new = await async_client.post("/api/users/login", json={
        "user": {"email": "germione@prisma.com", "password": "newpass"},
    })
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_current_user_username_conflict(async_client: AsyncClient, register):
    await register("naboo")
    headers = await register("germione")
    resp = await async_client.put("/api/user", headers=headers, json={
        "user": {"username": "naboo"},
    })
    assert resp.status_code == 409
    assert resp.json() == {"errors": {"username": ["has already been taken"]}}


@pytest.mark.asyncio
async def test_update_current_user_keeps_own_email(async_client: AsyncClient, register):
    """Re-sending the caller's own email is not a conflict."""
    headers = await register("germione")
    resp = await async_client.put("/api/user", headers=headers, json={
        "user": {"email": "germione@prisma.com", "bio": "same email"},
    })
    assert resp.status_code == 200
    assert resp.json()["user"]["bio"] == "same email"


@pytest.mark.asyncio
async def test_update_current_user_requires_token(async_client: AsyncClient):
    resp = await async_client.put("/api/user", json={"user": {"bio": "anon"}})
    assert resp.status_code == 401
