import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from hrms.db.session import Base


class LeaveBalance(Base):
    """Allocated/used day counters for one employee, one leave type, one calendar year.

    Remaining days are derived (allocated - used) and never stored.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_employee_type_year"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type_id = Column(UUID(as_uuid=True), ForeignKey("leave_types.id", ondelete="RESTRICT"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    allocated_days = Column(Integer, nullable=False, default=0)
    used_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    employee = relationship("Employee", backref="leave_balances", foreign_keys=[employee_id])
    leave_type = relationship("LeaveType", backref="leave_balances", foreign_keys=[leave_type_id])

    @property
    def remaining_days(self) -> int:
        return (self.allocated_days or 0) - (self.used_days or 0)
