"""Leave type reference data: list, create, update, delete (blocked while in use)."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.exceptions import NotFoundError, ServiceError
from hrms.core.models import LeaveApplication, LeaveBalance, LeaveType

from .schemas import LeaveTypeCreate, LeaveTypeResponse, LeaveTypeUpdate

logger = logging.getLogger(__name__)


async def _name_taken(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(LeaveType.id).where(LeaveType.name == name)
    if exclude_id is not None:
        stmt = stmt.where(LeaveType.id != exclude_id)
    return (await db.execute(stmt.limit(1))).scalar_one_or_none() is not None


async def get_leave_type(db: AsyncSession, type_id: UUID) -> LeaveType:
    lt = await db.get(LeaveType, type_id)
    if not lt:
        raise NotFoundError("Leave type not found")
    return lt


async def list_leave_types(db: AsyncSession, search: Optional[str] = None) -> List[LeaveTypeResponse]:
    stmt = select(LeaveType)
    if search and search.strip():
        stmt = stmt.where(LeaveType.name.ilike(f"%{search.strip()}%"))
    result = await db.execute(stmt.order_by(LeaveType.name))
    return [LeaveTypeResponse.model_validate(lt) for lt in result.scalars().all()]


async def create_leave_type(db: AsyncSession, payload: LeaveTypeCreate) -> LeaveTypeResponse:
    name = payload.name.strip()
    if await _name_taken(db, name):
        raise ServiceError(f"Leave type '{name}' already exists", status.HTTP_409_CONFLICT)
    lt = LeaveType(
        name=name,
        days_allowed=payload.days_allowed,
        is_paid=payload.is_paid,
        carry_forward=payload.carry_forward,
        description=payload.description.strip() if payload.description else None,
    )
    db.add(lt)
    await db.commit()
    await db.refresh(lt)
    logger.info("leave type created: id=%s name=%s days_allowed=%s", lt.id, lt.name, lt.days_allowed)
    return LeaveTypeResponse.model_validate(lt)


async def update_leave_type(db: AsyncSession, type_id: UUID, payload: LeaveTypeUpdate) -> LeaveTypeResponse:
    lt = await get_leave_type(db, type_id)
    if payload.name is not None:
        new_name = payload.name.strip()
        if new_name != lt.name and await _name_taken(db, new_name, exclude_id=lt.id):
            raise ServiceError(f"Leave type '{new_name}' already exists", status.HTTP_409_CONFLICT)
        lt.name = new_name
    if payload.days_allowed is not None:
        lt.days_allowed = payload.days_allowed
    if payload.is_paid is not None:
        lt.is_paid = payload.is_paid
    if payload.carry_forward is not None:
        lt.carry_forward = payload.carry_forward
    if payload.description is not None:
        lt.description = payload.description.strip() or None
    await db.commit()
    await db.refresh(lt)
    return LeaveTypeResponse.model_validate(lt)


async def delete_leave_type(db: AsyncSession, type_id: UUID) -> None:
    lt = await get_leave_type(db, type_id)
    used_by_application = await db.execute(
        select(LeaveApplication.id).where(LeaveApplication.leave_type_id == type_id).limit(1)
    )
    if used_by_application.scalar_one_or_none() is not None:
        raise ServiceError("Cannot delete leave type that has applications.", status.HTTP_400_BAD_REQUEST)
    used_by_balance = await db.execute(
        select(LeaveBalance.id).where(LeaveBalance.leave_type_id == type_id).limit(1)
    )
    if used_by_balance.scalar_one_or_none() is not None:
        raise ServiceError("Cannot delete leave type that has balances.", status.HTTP_400_BAD_REQUEST)
    await db.delete(lt)
    await db.commit()
    logger.info("leave type deleted: id=%s", type_id)
