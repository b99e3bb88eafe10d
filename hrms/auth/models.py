import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from hrms.db.session import Base


USER_STATUS_ACTIVE = "ACTIVE"

# Roles that bypass module permission checks
ADMIN_ROLES = ("SUPER_ADMIN", "ADMIN")


class User(Base):
    """Login identity. May act as an employee when employee_id is set."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    # Role name: SUPER_ADMIN, ADMIN, HR, MANAGER, EMPLOYEE, ...
    role = Column(String(50), nullable=False)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, unique=True)
    status = Column(String(20), nullable=False, default=USER_STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    employee = relationship("Employee", foreign_keys=[employee_id])


class Role(Base):
    """Role with JSON permissions, looked up by name at request time."""

    __tablename__ = "roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    # Example shape:
    # {
    #   "leave": {"read": true, "create": true, "approve": false},
    #   "employees": {"read": true}
    # }
    permissions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
