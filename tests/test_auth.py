import pytest
from httpx import AsyncClient
from jose import jwt

from app.auth.security import create_access_token
from tests.helpers import auth_headers


@pytest.mark.asyncio
async def test_missing_token_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/fees/student/student-1")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_key_rejected(client: AsyncClient) -> None:
    token = jwt.encode({"sub": "admin-1", "role": "admin"}, "wrong-key", algorithm="HS256")
    response = await client.get(
        "/api/v1/coupons",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient) -> None:
    token = create_access_token(subject={"sub": "admin-1", "role": "admin"}, expires_minutes=-1)
    response = await client.get("/api/v1/coupons", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/coupons", headers=auth_headers("x-1", "janitor"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_without_role_rejected(client: AsyncClient) -> None:
    token = create_access_token(subject={"sub": "admin-1"})
    response = await client.get("/api/v1/coupons", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_non_admin_forbidden_from_admin_endpoint(client: AsyncClient) -> None:
    for role in ("teacher", "parent", "student"):
        response = await client.get("/api/v1/coupons", headers=auth_headers(f"{role}-1", role))
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_admin_allowed(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/coupons", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == []
