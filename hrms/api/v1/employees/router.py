from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.rbac import check_permission
from hrms.core.exceptions import ServiceError
from hrms.db.session import get_db

from .schemas import EmployeeCreate, EmployeeResponse
from . import service

router = APIRouter(prefix="/api/v1/employees", tags=["employees"])


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("employees", "create"))],
)
async def create_employee(
    payload: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeResponse:
    try:
        return await service.create_employee(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "",
    response_model=List[EmployeeResponse],
    dependencies=[Depends(check_permission("employees", "read"))],
)
async def list_employees(
    active_only: bool = Query(True, description="Return only active employees by default"),
    search: Optional[str] = Query(None, description="Match first name, last name or employee code"),
    db: AsyncSession = Depends(get_db),
) -> List[EmployeeResponse]:
    return await service.list_employees(db, active_only=active_only, search=search)


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    dependencies=[Depends(check_permission("employees", "read"))],
)
async def get_employee(
    employee_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> EmployeeResponse:
    try:
        return EmployeeResponse.model_validate(await service.get_employee(db, employee_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
