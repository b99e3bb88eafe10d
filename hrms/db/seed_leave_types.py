"""
Seed script to populate leave_types with the default categories.

Idempotent: types that already exist (matched by name) are left untouched.
Usage: python -m hrms.db.seed_leave_types
"""
import asyncio
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.models import LeaveType
from hrms.db.session import AsyncSessionLocal


# (name, days_allowed, is_paid, carry_forward, description)
DEFAULT_LEAVE_TYPES: List[Tuple[str, int, bool, bool, str]] = [
    ("Casual Leave", 10, True, False, "Short personal leave"),
    ("Sick Leave", 14, True, False, "Illness or medical appointments"),
    ("Annual Leave", 20, True, True, "Planned vacation; unused days carry forward"),
    ("Unpaid Leave", 0, False, False, "Leave without pay"),
]


async def seed_leave_types(db: AsyncSession) -> int:
    existing = set((await db.execute(select(LeaveType.name))).scalars().all())
    created = 0
    for name, days_allowed, is_paid, carry_forward, description in DEFAULT_LEAVE_TYPES:
        if name in existing:
            continue
        db.add(
            LeaveType(
                name=name,
                days_allowed=days_allowed,
                is_paid=is_paid,
                carry_forward=carry_forward,
                description=description,
            )
        )
        created += 1
    await db.commit()
    return created


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            created = await seed_leave_types(db)
            print(f"Leave types seeded: {created} created.")
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
