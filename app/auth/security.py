from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # In case the stored hash is invalid/corrupted
        return False


def create_access_token(
    *, subject: Dict, expires_minutes: Optional[int] = None
) -> str:
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    return encoded_jwt


def token_for_user(user) -> str:
    """Access token carrying the claims get_current_user reads back."""
    return create_access_token(
        subject={
            "sub": str(user.id),
            "user_id": str(user.id),
            "role": user.role,
            "teacher_id": str(user.teacher_id) if user.teacher_id else None,
        }
    )


def decode_access_token(token: str) -> Optional[UUID]:
    """User id from a valid, unexpired token; None for anything else."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    user_id_str = payload.get("user_id") or payload.get("sub")
    if not user_id_str:
        return None
    try:
        return UUID(str(user_id_str))
    except ValueError:
        return None
