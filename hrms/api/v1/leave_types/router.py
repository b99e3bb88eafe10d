from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.rbac import check_permission
from hrms.core.exceptions import ServiceError
from hrms.db.session import get_db

from .schemas import LeaveTypeCreate, LeaveTypeResponse, LeaveTypeUpdate
from . import service

router = APIRouter(prefix="/api/v1/leave-types", tags=["leave-types"])


@router.get(
    "",
    response_model=List[LeaveTypeResponse],
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def list_leave_types(
    search: Optional[str] = Query(None, description="Filter by name"),
    db: AsyncSession = Depends(get_db),
) -> List[LeaveTypeResponse]:
    """List leave types (for the apply form dropdown)."""
    return await service.list_leave_types(db, search=search)


@router.post(
    "",
    response_model=LeaveTypeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("leave", "manage_types"))],
)
async def create_leave_type(
    payload: LeaveTypeCreate,
    db: AsyncSession = Depends(get_db),
) -> LeaveTypeResponse:
    try:
        return await service.create_leave_type(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{type_id}",
    response_model=LeaveTypeResponse,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def get_leave_type(
    type_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> LeaveTypeResponse:
    try:
        return LeaveTypeResponse.model_validate(await service.get_leave_type(db, type_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{type_id}",
    response_model=LeaveTypeResponse,
    dependencies=[Depends(check_permission("leave", "manage_types"))],
)
async def update_leave_type(
    type_id: UUID,
    payload: LeaveTypeUpdate,
    db: AsyncSession = Depends(get_db),
) -> LeaveTypeResponse:
    try:
        return await service.update_leave_type(db, type_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/{type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("leave", "manage_types"))],
)
async def delete_leave_type(
    type_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a leave type. Refused while any application or balance references it."""
    try:
        await service.delete_leave_type(db, type_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
