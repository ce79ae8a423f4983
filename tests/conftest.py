import os

# Settings are read at import time; point them at an in-memory database before the app loads.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth.models import User  # noqa: E402
from app.auth.rbac import require_admin, require_teacher_or_admin  # noqa: E402
from app.auth.schemas import CurrentUser  # noqa: E402
from app.auth.security import hash_password, token_for_user  # noqa: E402
from app.core.models import SchoolClass, Teacher  # noqa: E402
from app.core.roster import standard_roster  # noqa: E402
from app.db.session import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite://"
ADMIN_PASSWORD = "AdminPass123"
TEACHER_PASSWORD = "TeacherPass123"


@pytest.fixture()
async def engine():
    """One in-memory SQLite database per test, shared by every connection through StaticPool."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
async def classes(db_session: AsyncSession):
    """The 18 standard classes."""
    for c in standard_roster():
        db_session.add(SchoolClass(id=c["id"], grade=c["grade"], name=c["name"], is_active=True))
    await db_session.commit()
    return [c["id"] for c in standard_roster()]


@pytest.fixture()
async def admin_user(db_session: AsyncSession) -> User:
    user = User(
        full_name="School Admin",
        email="admin@sekolah.sch.id",
        password_hash=hash_password(ADMIN_PASSWORD),
        role="admin",
        status="ACTIVE",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture()
async def teacher(db_session: AsyncSession) -> Teacher:
    t = Teacher(
        name="Budi Santoso",
        email="budi@sekolah.sch.id",
        phone="081234567890",
        subjects=["MATEMATIKA"],
        learning_goals=["Aljabar dasar"],
        is_active=True,
    )
    db_session.add(t)
    await db_session.commit()
    return t


@pytest.fixture()
async def teacher_user(db_session: AsyncSession, teacher: Teacher) -> User:
    user = User(
        teacher_id=teacher.id,
        full_name=teacher.name,
        email=teacher.email,
        password_hash=hash_password(TEACHER_PASSWORD),
        role="teacher",
        status="ACTIVE",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture()
def admin_headers(admin_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for_user(admin_user)}"}


@pytest.fixture()
def teacher_headers(teacher_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for_user(teacher_user)}"}


def store_down_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class UnreachableSession:
    """Stands in for an AsyncSession whose database cannot be reached."""

    async def execute(self, *args, **kwargs):
        raise store_down_error()

    async def get(self, *args, **kwargs):
        raise store_down_error()

    async def rollback(self):
        raise store_down_error()

    async def commit(self):
        raise store_down_error()

    def add(self, obj):
        pass


@pytest.fixture()
def unreachable_db() -> UnreachableSession:
    return UnreachableSession()


@pytest.fixture()
async def degraded_client() -> AsyncGenerator[AsyncClient, None]:
    """Client whose database is unreachable, with an admin identity resolved without the store."""
    async def override_get_db():
        yield UnreachableSession()

    async def override_user() -> CurrentUser:
        return CurrentUser(id="00000000-0000-0000-0000-000000000001", role="admin")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[require_admin] = override_user
    app.dependency_overrides[require_teacher_or_admin] = override_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
