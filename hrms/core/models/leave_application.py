"""Leave applications: created pending, then approved, rejected or cancelled exactly once."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from hrms.db.session import Base


# Status constants
LEAVE_STATUS_PENDING = "pending"
LEAVE_STATUS_APPROVED = "approved"
LEAVE_STATUS_REJECTED = "rejected"
LEAVE_STATUS_CANCELLED = "cancelled"

LEAVE_STATUSES = (
    LEAVE_STATUS_PENDING,
    LEAVE_STATUS_APPROVED,
    LEAVE_STATUS_REJECTED,
    LEAVE_STATUS_CANCELLED,
)


class LeaveApplication(Base):
    __tablename__ = "leave_applications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(UUID(as_uuid=True), ForeignKey("leave_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=LEAVE_STATUS_PENDING, index=True)
    applied_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    # Approver for approved and rejected applications
    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    # [{"name": ..., "path": ..., "content_type": ...}] references into document storage
    documents = Column(JSON, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    employee = relationship("Employee", backref="leave_applications", foreign_keys=[employee_id])
    leave_type = relationship("LeaveType", backref="leave_applications", foreign_keys=[leave_type_id])
    approver = relationship("User", foreign_keys=[approved_by])
