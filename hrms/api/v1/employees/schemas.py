from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EmployeeCreate(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=100)


class EmployeeResponse(BaseModel):
    id: UUID
    employee_code: str
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    department: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
