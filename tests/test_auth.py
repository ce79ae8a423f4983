import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User

ADMIN_PASSWORD = "AdminPass123"
TEACHER_PASSWORD = "TeacherPass123"


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "ADMIN@sekolah.sch.id", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["role"] == "admin"
    assert data["user"]["email"] == "admin@sekolah.sch.id"


@pytest.mark.asyncio
async def test_login_teacher_carries_teacher_id(client: AsyncClient, teacher_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": teacher_user.email, "password": TEACHER_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["user"]["teacher_id"] == str(teacher_user.teacher_id)


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@sekolah.sch.id", "password": "wrong"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_inactive_user(client: AsyncClient, db_session: AsyncSession, admin_user: User) -> None:
    await db_session.execute(update(User).where(User.id == admin_user.id).values(status="INACTIVE"))
    await db_session.commit()
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "admin@sekolah.sch.id", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_login_oauth_form(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login-oauth",
        data={"username": "admin@sekolah.sch.id", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_protected_route_requires_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/assignments")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_teacher_cannot_reach_admin_routes(client: AsyncClient, teacher_headers) -> None:
    response = await client.get("/api/v1/admin/class-status", headers=teacher_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


@pytest.mark.asyncio
async def test_me_returns_linked_teacher(client: AsyncClient, teacher_user: User, teacher_headers) -> None:
    response = await client.get("/api/v1/auth/me", headers=teacher_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "teacher"
    assert data["teacher_id"] == str(teacher_user.teacher_id)


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
