from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ----- Documents -----
class DocumentRef(BaseModel):
    """Reference to an attachment held by the document store; contents are never read here."""

    name: str = Field(..., max_length=255)
    path: str = Field(..., max_length=1024)
    content_type: Optional[str] = Field(None, max_length=100)


# ----- Apply Leave -----
class LeaveApplicationCreate(BaseModel):
    """Apply for leave. Required-field checks happen in the shared validator so every
    failure comes back as a field-scoped error."""

    employee_id: Optional[UUID] = Field(None, description="Apply on behalf of another employee; defaults to the caller")
    leave_type_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=2000)
    documents: Optional[List[DocumentRef]] = None
    auto_approve: bool = Field(False, description="Approve immediately; honoured for approvers applying on behalf of another employee")


class LeaveValidationResult(BaseModel):
    valid: bool
    days: Optional[int] = None
    errors: List[dict] = Field(default_factory=list)


# ----- Leave Application Response -----
class LeaveApplicationResponse(BaseModel):
    id: UUID
    employee_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    days: int
    reason: str
    status: str
    applied_at: datetime
    approved_by: Optional[UUID] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    documents: Optional[List[DocumentRef]] = None
    created_by: UUID

    class Config:
        from_attributes = True


class LeaveApprovalResponse(BaseModel):
    id: UUID
    approved_by: Optional[UUID] = None
    level: int
    status: str
    comments: Optional[str] = None
    approved_at: datetime

    class Config:
        from_attributes = True


class LeaveApplicationDetail(LeaveApplicationResponse):
    approvals: List[LeaveApprovalResponse] = Field(default_factory=list)


# ----- Approve / Reject -----
class LeaveApprove(BaseModel):
    comments: Optional[str] = Field(None, max_length=2000)


class LeaveReject(BaseModel):
    rejection_reason: Optional[str] = Field(None, max_length=2000)


# ----- Report -----
class LeaveReportSummary(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    total_days: int = 0


class LeaveReportResponse(BaseModel):
    start_date: date
    end_date: date
    summary: LeaveReportSummary
    applications: List[LeaveApplicationResponse]
