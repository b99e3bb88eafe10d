import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD, auth_headers, create_user


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, alice_user) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "Alice@Example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()

    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "alice@example.com"
    assert data["user"]["role"] == "EMPLOYEE"
    assert data["user"]["employee_id"] is not None


@pytest.mark.asyncio
async def test_login_oauth_form(client: AsyncClient, alice_user) -> None:
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": "alice@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, alice_user) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "alice@example.com", "password": "nope"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_inactive_user(client: AsyncClient, db_session: AsyncSession, roles) -> None:
    await create_user(db_session, "gone@example.com", "EMPLOYEE", status="INACTIVE")
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "gone@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_protected_route_requires_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/leave-types")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_permission_is_forbidden(client: AsyncClient, alice_user) -> None:
    response = await client.post(
        "/api/v1/leave-types",
        json={"name": "Study Leave", "days_allowed": 5},
        headers=auth_headers(alice_user),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"
