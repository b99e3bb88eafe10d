from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: str
    role: str
    employee_id: Optional[UUID] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for RBAC checks."""

    id: UUID
    role: str
    permissions: Dict[str, Dict[str, bool]]
    employee_id: Optional[UUID] = None  # Employee record this user acts as, if any
