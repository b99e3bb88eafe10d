from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.rbac import check_permission, has_permission
from hrms.auth.schemas import CurrentUser
from hrms.core.exceptions import ServiceError
from hrms.db.session import get_db

from .schemas import (
    BulkAllocateResult,
    LeaveBalanceAdjust,
    LeaveBalanceAllocate,
    LeaveBalanceBulkAllocate,
    LeaveBalanceResponse,
    LeaveBalanceRollover,
    RolloverResult,
)
from . import service

router = APIRouter(prefix="/api/v1/leave-balances", tags=["leave-balances"])


@router.get(
    "",
    response_model=List[LeaveBalanceResponse],
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def list_leave_balances(
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[LeaveBalanceResponse]:
    """List balances. Users without leave.view_all or leave.manage_balances only see their own."""
    sees_all = has_permission(current_user, "leave", "view_all") or has_permission(
        current_user, "leave", "manage_balances"
    )
    if not sees_all:
        if not current_user.employee_id:
            return []
        employee_id = current_user.employee_id
    return await service.list_balances(db, year=year, employee_id=employee_id, leave_type_id=leave_type_id)


@router.get(
    "/my",
    response_model=List[LeaveBalanceResponse],
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def my_leave_balances(
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[LeaveBalanceResponse]:
    """Balances of the employee linked to the logged-in user (shown on the apply form)."""
    if not current_user.employee_id:
        return []
    return await service.list_balances(db, year=year, employee_id=current_user.employee_id)


@router.post(
    "",
    response_model=LeaveBalanceResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("leave", "manage_balances"))],
)
async def allocate_leave_balance(
    payload: LeaveBalanceAllocate,
    db: AsyncSession = Depends(get_db),
) -> LeaveBalanceResponse:
    """Create or overwrite one employee's balance for a leave type and year."""
    try:
        return await service.allocate(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{balance_id}",
    response_model=LeaveBalanceResponse,
    dependencies=[Depends(check_permission("leave", "manage_balances"))],
)
async def adjust_leave_balance(
    balance_id: UUID,
    payload: LeaveBalanceAdjust,
    db: AsyncSession = Depends(get_db),
) -> LeaveBalanceResponse:
    try:
        return await service.adjust_balance(db, balance_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/bulk",
    response_model=BulkAllocateResult,
    dependencies=[Depends(check_permission("leave", "manage_balances"))],
)
async def bulk_allocate_leave_balances(
    payload: LeaveBalanceBulkAllocate,
    db: AsyncSession = Depends(get_db),
) -> BulkAllocateResult:
    """Allocate the same days to several employees at once. Nothing is written if any employee is unknown."""
    try:
        return await service.bulk_allocate(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/rollover",
    response_model=RolloverResult,
    dependencies=[Depends(check_permission("leave", "manage_balances"))],
)
async def rollover_leave_balances(
    payload: LeaveBalanceRollover,
    db: AsyncSession = Depends(get_db),
) -> RolloverResult:
    try:
        return await service.rollover_year(db, payload.from_year, payload.to_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
