"""
Create any missing tables for the ORM models.

Usage: python -m hrms.db.init_db
Safe to re-run; existing tables are left as they are.
"""
import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models so they are registered on Base.metadata
from hrms.auth.models import Role, User  # noqa: F401
from hrms.core.models import Employee, LeaveApplication, LeaveApproval, LeaveBalance, LeaveType  # noqa: F401
from hrms.db.session import Base, engine


async def create_tables(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    await create_tables()
    print("Tables ready.")


if __name__ == "__main__":
    asyncio.run(main())
