"""
Seed script to create the ADMIN role and the first admin user.

Run once (after init_db) with env set:
  ADMIN_EMAIL=hr@example.com
  ADMIN_PASSWORD=YourSecurePassword

Creates or updates:
- roles: ADMIN (all leave and employee actions; RBAC also bypasses checks for it)
  and EMPLOYEE (apply for and read own leave)
- users: one user with role ADMIN
"""
import asyncio
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import USER_STATUS_ACTIVE, Role, User
from hrms.auth.security import hash_password
from hrms.core.config import settings
from hrms.core.models import Employee  # noqa: F401
from hrms.db.session import AsyncSessionLocal

ADMIN_ROLE = "ADMIN"
EMPLOYEE_ROLE = "EMPLOYEE"
DEFAULT_ADMIN_FULL_NAME = "HR Administrator"

DEFAULT_ROLE_PERMISSIONS: Dict[str, Dict[str, Dict[str, bool]]] = {
    ADMIN_ROLE: {
        "leave": {
            "read": True,
            "create": True,
            "approve": True,
            "edit": True,
            "view_all": True,
            "manage_types": True,
            "manage_balances": True,
        },
        "employees": {"read": True, "create": True},
    },
    EMPLOYEE_ROLE: {
        "leave": {"read": True, "create": True},
    },
}


async def seed_roles(db: AsyncSession) -> None:
    for name, permissions in DEFAULT_ROLE_PERMISSIONS.items():
        role = (await db.execute(select(Role).where(Role.name == name))).scalar_one_or_none()
        if role is None:
            db.add(Role(name=name, permissions=permissions))
            print("Created role:", name)
        else:
            role.permissions = permissions
            print("Updated role permissions:", name)


async def seed_admin(db: AsyncSession) -> None:
    await seed_roles(db)

    email = (settings.admin_email or "").strip().lower()
    password = settings.admin_password
    if not email or not password:
        await db.commit()
        print("No ADMIN_EMAIL/ADMIN_PASSWORD; skipping admin user.")
        return

    user = (await db.execute(select(User).where(func.lower(User.email) == email))).scalar_one_or_none()
    if user is None:
        db.add(
            User(
                full_name=DEFAULT_ADMIN_FULL_NAME,
                email=email,
                password_hash=hash_password(password),
                role=ADMIN_ROLE,
                status=USER_STATUS_ACTIVE,
            )
        )
        print("Created ADMIN user:", email)
    else:
        user.role = ADMIN_ROLE
        user.password_hash = hash_password(password)
        user.status = USER_STATUS_ACTIVE
        print("Updated existing user to ADMIN:", email)

    await db.commit()
    print("Admin seed done.")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
