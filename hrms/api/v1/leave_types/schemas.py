from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LeaveTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    days_allowed: int = Field(..., ge=0)
    is_paid: bool = True
    carry_forward: bool = False
    description: Optional[str] = None


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    days_allowed: Optional[int] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    carry_forward: Optional[bool] = None
    description: Optional[str] = None


class LeaveTypeResponse(BaseModel):
    id: UUID
    name: str
    days_allowed: int
    is_paid: bool
    carry_forward: bool
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
