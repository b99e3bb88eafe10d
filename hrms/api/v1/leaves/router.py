from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.rbac import check_permission
from hrms.auth.schemas import CurrentUser
from hrms.core.exceptions import ServiceError
from hrms.db.session import get_db

from .capabilities import actor_from_user
from .schemas import (
    LeaveApplicationCreate,
    LeaveApplicationDetail,
    LeaveApplicationResponse,
    LeaveApprove,
    LeaveReject,
    LeaveReportResponse,
    LeaveValidationResult,
)
from . import service

router = APIRouter(prefix="/api/v1/leaves", tags=["leaves"])


@router.post(
    "/validate",
    response_model=LeaveValidationResult,
    dependencies=[Depends(check_permission("leave", "create"))],
)
async def validate_leave(
    payload: LeaveApplicationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveValidationResult:
    """Run the submission checks without saving anything (used by the apply form)."""
    try:
        return await service.validate_submission(db, actor_from_user(current_user), payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "",
    response_model=LeaveApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("leave", "create"))],
)
async def apply_leave(
    payload: LeaveApplicationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveApplicationResponse:
    """Apply for leave. Stored as pending unless an approver asks for auto_approve."""
    try:
        return await service.submit_leave_application(db, actor_from_user(current_user), payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "",
    response_model=List[LeaveApplicationResponse],
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def list_leaves(
    status_filter: Optional[str] = Query(None, alias="status"),
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    search: Optional[str] = Query(None, description="Employee name or code"),
    department: Optional[str] = Query(None, description="Employee department"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[LeaveApplicationResponse]:
    return await service.list_applications(
        db,
        actor_from_user(current_user),
        status=status_filter,
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
        department=department,
    )


@router.get(
    "/report",
    response_model=LeaveReportResponse,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def leave_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    department: Optional[str] = Query(None, description="Employee department"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveReportResponse:
    """Applications starting in the window (default: last 30 days) with per-status counts."""
    try:
        return await service.leave_report(
            db,
            actor_from_user(current_user),
            start_date=start_date,
            end_date=end_date,
            status=status_filter,
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            department=department,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{leave_id}",
    response_model=LeaveApplicationDetail,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def get_leave(
    leave_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveApplicationDetail:
    try:
        return await service.get_application_detail(db, actor_from_user(current_user), leave_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/{leave_id}/approve",
    response_model=LeaveApplicationResponse,
    dependencies=[Depends(check_permission("leave", "approve"))],
)
async def approve_leave(
    leave_id: UUID,
    payload: Optional[LeaveApprove] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveApplicationResponse:
    """Approve a pending application and deduct its days from the employee's balance."""
    try:
        return await service.approve_leave(
            db,
            actor_from_user(current_user),
            leave_id,
            comments=payload.comments if payload else None,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/{leave_id}/reject",
    response_model=LeaveApplicationResponse,
    dependencies=[Depends(check_permission("leave", "approve"))],
)
async def reject_leave(
    leave_id: UUID,
    payload: LeaveReject,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveApplicationResponse:
    try:
        return await service.reject_leave(db, actor_from_user(current_user), leave_id, payload.rejection_reason)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "/{leave_id}/cancel",
    response_model=LeaveApplicationResponse,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def cancel_leave(
    leave_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveApplicationResponse:
    """Cancel an application. Owners may cancel their own pending applications."""
    try:
        return await service.cancel_leave(db, actor_from_user(current_user), leave_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
