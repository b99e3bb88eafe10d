"""Append-only log of approval decisions on leave applications."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from hrms.db.session import Base


APPROVAL_STATUS_APPROVED = "approved"
APPROVAL_STATUS_REJECTED = "rejected"


class LeaveApproval(Base):
    __tablename__ = "leave_approvals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    leave_application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("leave_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    level = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False)
    comments = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    leave_application = relationship("LeaveApplication", backref="approvals", foreign_keys=[leave_application_id])
