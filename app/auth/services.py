import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import LoginRequest, LoginResponse, UserInfo
from app.auth.security import token_for_user, verify_password
from app.core.exceptions import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        name=user.full_name,
        email=user.email,
        role=user.role,
        teacher_id=user.teacher_id,
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    # Email match is case-insensitive
    user_result = await db.execute(select(User).where(func.lower(User.email) == payload.email.lower()))
    user: Optional[User] = user_result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    # Deactivated teachers keep their row but lose access.
    if user.status != "ACTIVE":
        raise ServiceError("User is inactive", status.HTTP_403_FORBIDDEN)

    return LoginResponse(
        access_token=token_for_user(user),
        user=_user_info(user),
        issued_at=datetime.now(timezone.utc),
    )


async def get_user_info(db: AsyncSession, user_id: UUID) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return _user_info(user)
