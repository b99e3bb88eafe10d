"""Explicit capability set for the leave workflow.

Workflow functions take a LeaveActor instead of reading the request's user, so
they can be exercised directly in tests.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from hrms.auth.rbac import has_permission
from hrms.auth.schemas import CurrentUser


@dataclass(frozen=True)
class LeaveActor:
    user_id: UUID
    employee_id: Optional[UUID] = None
    can_approve: bool = False
    can_backdate: bool = False
    can_exceed_balance: bool = False
    can_cancel_any: bool = False
    can_view_all: bool = False
    can_apply_for_others: bool = False

    def owns(self, employee_id: UUID) -> bool:
        return self.employee_id is not None and self.employee_id == employee_id


def actor_from_user(current_user: CurrentUser) -> LeaveActor:
    def allowed(module: str, action: str) -> bool:
        return has_permission(current_user, module, action)

    can_edit = allowed("leave", "edit")
    return LeaveActor(
        user_id=current_user.id,
        employee_id=current_user.employee_id,
        can_approve=allowed("leave", "approve"),
        can_backdate=can_edit,
        can_exceed_balance=can_edit,
        can_cancel_any=can_edit,
        can_view_all=allowed("leave", "view_all"),
        can_apply_for_others=allowed("leave", "create") and allowed("employees", "read"),
    )
