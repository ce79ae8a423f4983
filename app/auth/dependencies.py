import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import CurrentUser
from app.auth.security import decode_access_token
from app.core.exceptions import PersistenceUnavailableError
from app.core.quota import STORE_ERRORS
from app.db.session import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    # Role and teacher link are read from the database, not the token, so role changes apply at once.
    try:
        user = await db.get(User, user_id)
    except STORE_ERRORS as e:
        logger.error("Could not load user %s: %s", user_id, e)
        unavailable = PersistenceUnavailableError()
        raise HTTPException(status_code=unavailable.status_code, detail=unavailable.detail)
    if not user or user.status != "ACTIVE":
        raise credentials_exception

    return CurrentUser(
        id=user.id,
        role=user.role,
        teacher_id=user.teacher_id,
    )
