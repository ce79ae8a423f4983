"""
Seed the standard class roster, default settings and the first admin user.

Run once (after schema_check) with env set:
  ADMIN_EMAIL=admin@school.sch.id
  ADMIN_PASSWORD=YourSecurePassword

Creates (when missing):
- classes: grades 7, 8, 9 x DISCIPLINE, RESPECT, RESILIENT, COLLABORATIVE, CREATIVE, INDEPENDENT
- settings: max_weekly_assignments, max_weekly_exams, school_year, semester
- users: one admin user
"""
import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.settings.service import DESCRIPTIONS, default_settings
from app.auth.models import User
from app.auth.security import hash_password
from app.core.config import settings
from app.core.enums import UserRole
from app.core.models import SchoolClass, Setting
from app.core.roster import standard_roster
from app.db.session import AsyncSessionLocal

DEFAULT_ADMIN_FULL_NAME = "School Admin"


async def seed_school(db: AsyncSession) -> None:
    # 1. Class roster
    result = await db.execute(select(SchoolClass.id))
    existing = {row[0] for row in result.all()}
    created = 0
    for c in standard_roster():
        if c["id"] not in existing:
            db.add(SchoolClass(id=c["id"], grade=c["grade"], name=c["name"], is_active=True))
            created += 1
    print(f"Classes: {created} created, {len(existing)} already present.")

    # 2. Default settings
    result = await db.execute(select(Setting.key))
    stored = {row[0] for row in result.all()}
    for key, value in default_settings().items():
        if key not in stored:
            db.add(Setting(key=key, value=value, description=DESCRIPTIONS.get(key)))
            print(f"Setting {key} = {value!r}")

    # 3. Admin user
    email = settings.admin_email
    password = settings.admin_password
    if not email or not password:
        await db.commit()
        print("No ADMIN_EMAIL/ADMIN_PASSWORD; skipping admin user.")
        return

    email = email.strip().lower()
    user_result = await db.execute(select(User).where(func.lower(User.email) == email))
    admin = user_result.scalar_one_or_none()
    if not admin:
        db.add(
            User(
                full_name=DEFAULT_ADMIN_FULL_NAME,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN.value,
                status="ACTIVE",
            )
        )
        print(f"Created admin user {email}.")
    else:
        admin.role = UserRole.ADMIN.value
        admin.status = "ACTIVE"
        admin.password_hash = hash_password(password)
        print(f"Admin user {email} already exists; password and role refreshed.")

    await db.commit()
    print("School seed done.")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_school(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
