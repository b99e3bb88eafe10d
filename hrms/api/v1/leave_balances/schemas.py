from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


YEAR_MIN = 2000
YEAR_MAX = 2100


class LeaveBalanceAllocate(BaseModel):
    employee_id: UUID
    leave_type_id: UUID
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    allocated_days: int = Field(..., ge=0)
    used_days: int = Field(0, ge=0)


class LeaveBalanceAdjust(BaseModel):
    allocated_days: int = Field(..., ge=0)
    used_days: int = Field(..., ge=0)


class LeaveBalanceBulkAllocate(BaseModel):
    employee_ids: List[UUID] = Field(..., min_length=1)
    leave_type_id: UUID
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    allocated_days: int = Field(..., ge=0)
    skip_existing: bool = Field(False, description="Leave existing balances untouched instead of resetting them")


class LeaveBalanceRollover(BaseModel):
    from_year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    to_year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)


class LeaveBalanceResponse(BaseModel):
    id: UUID
    employee_id: UUID
    leave_type_id: UUID
    leave_type_name: Optional[str] = None
    year: int
    allocated_days: int
    used_days: int
    remaining_days: int  # allocated - used, never below 0 here
    updated_at: datetime


class BulkAllocateResult(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0


class RolloverResult(BaseModel):
    from_year: int
    to_year: int
    created: int = 0
    updated: int = 0
