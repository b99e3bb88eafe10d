"""Leave balance ledger: allocation, bulk allocation, year rollover, deduct/restore.

deduct() and restore() do not commit; they run inside the caller's transaction
(leave approval or cancellation) so the balance and the application status are
written together. The remaining public operations commit through atomic().
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.v1.employees.service import get_employee
from hrms.api.v1.leave_types.service import get_leave_type
from hrms.core.exceptions import FieldValidationError, NotFoundError, PreconditionFailed
from hrms.core.models import Employee, LeaveBalance, LeaveType
from hrms.db.session import atomic

from .schemas import (
    BulkAllocateResult,
    LeaveBalanceAdjust,
    LeaveBalanceAllocate,
    LeaveBalanceBulkAllocate,
    LeaveBalanceResponse,
    RolloverResult,
)

logger = logging.getLogger(__name__)


def _to_response(balance: LeaveBalance, leave_type_name: Optional[str] = None) -> LeaveBalanceResponse:
    return LeaveBalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type_id=balance.leave_type_id,
        leave_type_name=leave_type_name,
        year=balance.year,
        allocated_days=balance.allocated_days,
        used_days=balance.used_days,
        remaining_days=max(balance.remaining_days, 0),
        updated_at=balance.updated_at,
    )


def _check_counts(allocated_days: int, used_days: int) -> None:
    if used_days > allocated_days:
        raise FieldValidationError.single("used_days", "Used days cannot exceed allocated days.")


async def _lock_balance(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
) -> Optional[LeaveBalance]:
    """Re-read the balance row with a write lock for the rest of the transaction."""
    result = await db.execute(
        select(LeaveBalance)
        .where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _upsert(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
    allocated_days: int,
    used_days: int,
    existing: Optional[LeaveBalance] = None,
) -> Tuple[LeaveBalance, bool]:
    if existing is None:
        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            allocated_days=allocated_days,
            used_days=used_days,
        )
        db.add(balance)
        return balance, True
    existing.allocated_days = allocated_days
    existing.used_days = used_days
    return existing, False


async def get_remaining_days(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
) -> Optional[int]:
    """Remaining days for the balance row, or None when no row exists."""
    result = await db.execute(
        select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year,
        )
    )
    balance = result.scalar_one_or_none()
    return balance.remaining_days if balance else None


async def list_balances(
    db: AsyncSession,
    year: Optional[int] = None,
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
) -> List[LeaveBalanceResponse]:
    stmt = (
        select(LeaveBalance, LeaveType.name)
        .join(LeaveType, LeaveType.id == LeaveBalance.leave_type_id)
        .where(LeaveBalance.year == (year or date.today().year))
    )
    if employee_id is not None:
        stmt = stmt.where(LeaveBalance.employee_id == employee_id)
    if leave_type_id is not None:
        stmt = stmt.where(LeaveBalance.leave_type_id == leave_type_id)
    stmt = stmt.order_by(LeaveBalance.employee_id, LeaveType.name)
    result = await db.execute(stmt)
    return [_to_response(balance, name) for balance, name in result.all()]


async def allocate(db: AsyncSession, payload: LeaveBalanceAllocate) -> LeaveBalanceResponse:
    """Create or overwrite the (employee, leave type, year) balance."""
    _check_counts(payload.allocated_days, payload.used_days)
    async with atomic(db):
        await get_employee(db, payload.employee_id)
        lt = await get_leave_type(db, payload.leave_type_id)
        existing = await _lock_balance(db, payload.employee_id, payload.leave_type_id, payload.year)
        balance, created = await _upsert(
            db,
            payload.employee_id,
            payload.leave_type_id,
            payload.year,
            payload.allocated_days,
            payload.used_days,
            existing=existing,
        )
    await db.refresh(balance)
    logger.info(
        "leave balance %s: employee_id=%s leave_type_id=%s year=%s allocated=%s used=%s",
        "created" if created else "overwritten",
        payload.employee_id,
        payload.leave_type_id,
        payload.year,
        payload.allocated_days,
        payload.used_days,
    )
    return _to_response(balance, lt.name)


async def adjust_balance(db: AsyncSession, balance_id: UUID, payload: LeaveBalanceAdjust) -> LeaveBalanceResponse:
    _check_counts(payload.allocated_days, payload.used_days)
    async with atomic(db):
        result = await db.execute(select(LeaveBalance).where(LeaveBalance.id == balance_id).with_for_update())
        balance = result.scalar_one_or_none()
        if not balance:
            raise NotFoundError("Leave balance not found")
        balance.allocated_days = payload.allocated_days
        balance.used_days = payload.used_days
    await db.refresh(balance)
    lt = await db.get(LeaveType, balance.leave_type_id)
    logger.info(
        "leave balance adjusted: id=%s allocated=%s used=%s",
        balance.id,
        balance.allocated_days,
        balance.used_days,
    )
    return _to_response(balance, lt.name if lt else None)


async def bulk_allocate(db: AsyncSession, payload: LeaveBalanceBulkAllocate) -> BulkAllocateResult:
    """Allocate the same days to many employees in one transaction; any unknown id aborts all."""
    employee_ids = list(dict.fromkeys(payload.employee_ids))
    outcome = BulkAllocateResult()
    async with atomic(db):
        await get_leave_type(db, payload.leave_type_id)

        found = await db.execute(select(Employee.id).where(Employee.id.in_(employee_ids)))
        known = {row[0] for row in found.all()}
        missing = [str(e) for e in employee_ids if e not in known]
        if missing:
            raise FieldValidationError.single(
                "employee_ids",
                f"Unknown employee id(s): {', '.join(missing)}",
            )

        existing_rows = await db.execute(
            select(LeaveBalance)
            .where(
                LeaveBalance.employee_id.in_(employee_ids),
                LeaveBalance.leave_type_id == payload.leave_type_id,
                LeaveBalance.year == payload.year,
            )
            .with_for_update()
        )
        existing: Dict[UUID, LeaveBalance] = {b.employee_id: b for b in existing_rows.scalars().all()}

        for employee_id in employee_ids:
            current = existing.get(employee_id)
            if current is not None and payload.skip_existing:
                outcome.skipped += 1
                continue
            _, created = await _upsert(
                db,
                employee_id,
                payload.leave_type_id,
                payload.year,
                payload.allocated_days,
                0,
                existing=current,
            )
            if created:
                outcome.created += 1
            else:
                outcome.updated += 1

    logger.info(
        "leave balances bulk allocated: leave_type_id=%s year=%s days=%s created=%s updated=%s skipped=%s",
        payload.leave_type_id,
        payload.year,
        payload.allocated_days,
        outcome.created,
        outcome.updated,
        outcome.skipped,
    )
    return outcome


async def rollover_year(db: AsyncSession, from_year: int, to_year: int) -> RolloverResult:
    """Open to_year balances from from_year ones.

    New allocation is the leave type's days_allowed, plus the unused days of
    from_year when the type carries forward. Used days start at zero.
    """
    if from_year == to_year:
        raise FieldValidationError.single("to_year", "The target year must differ from the source year.")

    outcome = RolloverResult(from_year=from_year, to_year=to_year)
    async with atomic(db):
        previous = await db.execute(
            select(LeaveBalance, LeaveType)
            .join(LeaveType, LeaveType.id == LeaveBalance.leave_type_id)
            .where(LeaveBalance.year == from_year)
            .with_for_update()
        )
        previous_rows = previous.all()

        target = await db.execute(select(LeaveBalance).where(LeaveBalance.year == to_year).with_for_update())
        existing: Dict[Tuple[UUID, UUID], LeaveBalance] = {
            (b.employee_id, b.leave_type_id): b for b in target.scalars().all()
        }

        for prev, leave_type in previous_rows:
            carried = prev.remaining_days if leave_type.carry_forward and prev.remaining_days > 0 else 0
            _, created = await _upsert(
                db,
                prev.employee_id,
                prev.leave_type_id,
                to_year,
                leave_type.days_allowed + carried,
                0,
                existing=existing.get((prev.employee_id, prev.leave_type_id)),
            )
            if created:
                outcome.created += 1
            else:
                outcome.updated += 1

    logger.info(
        "leave balances rolled over: from_year=%s to_year=%s created=%s updated=%s",
        from_year,
        to_year,
        outcome.created,
        outcome.updated,
    )
    return outcome


async def deduct(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
    days: int,
) -> LeaveBalance:
    """Add days to used_days. A missing balance row aborts the enclosing transaction."""
    balance = await _lock_balance(db, employee_id, leave_type_id, year)
    if balance is None:
        raise PreconditionFailed(f"No {year} leave balance exists for this employee and leave type.")
    balance.used_days = (balance.used_days or 0) + days
    logger.info(
        "leave balance deducted: balance_id=%s days=%s used=%s allocated=%s",
        balance.id,
        days,
        balance.used_days,
        balance.allocated_days,
    )
    return balance


async def restore(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
    days: int,
) -> LeaveBalance:
    """Give back days previously deducted; used_days never drops below zero."""
    balance = await _lock_balance(db, employee_id, leave_type_id, year)
    if balance is None:
        raise PreconditionFailed(f"No {year} leave balance exists for this employee and leave type.")
    balance.used_days = max((balance.used_days or 0) - days, 0)
    logger.info("leave balance restored: balance_id=%s days=%s used=%s", balance.id, days, balance.used_days)
    return balance
