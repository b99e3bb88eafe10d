from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.exceptions import NotFoundError, ServiceError
from hrms.core.models import Employee
from hrms.core.models.employee import EMPLOYEE_STATUS_ACTIVE

from .schemas import EmployeeCreate, EmployeeResponse


async def create_employee(db: AsyncSession, payload: EmployeeCreate) -> EmployeeResponse:
    code = payload.employee_code.strip().upper()
    emp = Employee(
        employee_code=code,
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email.strip() if payload.email else None,
        department=payload.department.strip() if payload.department else None,
        status=EMPLOYEE_STATUS_ACTIVE,
    )
    try:
        db.add(emp)
        await db.commit()
        await db.refresh(emp)
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            f"Employee code '{code}' already exists",
            status.HTTP_409_CONFLICT,
        )
    return EmployeeResponse.model_validate(emp)


async def list_employees(
    db: AsyncSession,
    active_only: bool = True,
    search: Optional[str] = None,
) -> List[EmployeeResponse]:
    stmt = select(Employee)
    if active_only:
        stmt = stmt.where(Employee.status == EMPLOYEE_STATUS_ACTIVE)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                Employee.employee_code.ilike(pattern),
            )
        )
    stmt = stmt.order_by(Employee.first_name, Employee.last_name)
    result = await db.execute(stmt)
    return [EmployeeResponse.model_validate(e) for e in result.scalars().all()]


async def get_employee(db: AsyncSession, employee_id: UUID) -> Employee:
    """Load an employee or raise NotFoundError. Used by the leave services as well."""
    emp = await db.get(Employee, employee_id)
    if not emp:
        raise NotFoundError("Employee not found")
    return emp
