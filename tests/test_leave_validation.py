from datetime import date
from typing import Optional
from uuid import uuid4

from hrms.api.v1.leaves.capabilities import LeaveActor, actor_from_user
from hrms.api.v1.leaves.schemas import LeaveApplicationCreate
from hrms.api.v1.leaves.validation import validate_leave_submission
from hrms.auth.schemas import CurrentUser


TODAY = date(2025, 3, 1)
EMPLOYEE = LeaveActor(user_id=uuid4(), employee_id=uuid4())
PRIVILEGED = LeaveActor(user_id=uuid4(), employee_id=uuid4(), can_backdate=True, can_exceed_balance=True)


def _payload(**overrides) -> LeaveApplicationCreate:
    data = {
        "leave_type_id": uuid4(),
        "start_date": date(2025, 3, 10),
        "end_date": date(2025, 3, 12),
        "reason": "Family event",
    }
    data.update(overrides)
    return LeaveApplicationCreate(**data)


def _errors(payload: LeaveApplicationCreate, actor: LeaveActor = EMPLOYEE, remaining: Optional[int] = 10, **kw):
    return [(e.field, e.message) for e in validate_leave_submission(payload, actor, TODAY, remaining_days=remaining, **kw)]


def test_valid_submission_has_no_errors() -> None:
    assert _errors(_payload()) == []


def test_missing_fields_reported_in_order() -> None:
    payload = LeaveApplicationCreate()
    fields = [f for f, _ in _errors(payload)]
    assert fields == ["leave_type_id", "start_date", "end_date", "reason"]


def test_unknown_leave_type() -> None:
    assert _errors(_payload(), leave_type_exists=False) == [
        ("leave_type_id", "The selected leave type is invalid."),
    ]


def test_end_before_start() -> None:
    errors = _errors(_payload(start_date=date(2025, 3, 12), end_date=date(2025, 3, 10)))
    assert errors == [("end_date", "The end date must be on or after the start date.")]


def test_past_start_date_rejected_for_regular_employee() -> None:
    errors = _errors(_payload(start_date=date(2025, 2, 27), end_date=date(2025, 2, 28)))
    assert errors == [("start_date", "The start date cannot be in the past.")]


def test_start_today_is_allowed() -> None:
    assert _errors(_payload(start_date=TODAY, end_date=TODAY)) == []


def test_privileged_actor_may_backdate() -> None:
    assert _errors(_payload(start_date=date(2025, 2, 1), end_date=date(2025, 2, 3)), actor=PRIVILEGED) == []


def test_blank_reason_rejected() -> None:
    assert _errors(_payload(reason="   ")) == [("reason", "The reason field is required.")]


def test_insufficient_balance_reports_both_counts() -> None:
    errors = _errors(_payload(), remaining=2)
    assert errors == [("leave_type_id", "Not enough leave balance. Available: 2 days, Requested: 3 days.")]


def test_exactly_enough_balance_passes() -> None:
    assert _errors(_payload(), remaining=3) == []


def test_missing_balance_row_rejected() -> None:
    assert _errors(_payload(), remaining=None) == [
        ("leave_type_id", "You do not have a leave balance for this leave type."),
    ]


def test_privileged_actor_may_exceed_balance() -> None:
    assert _errors(_payload(), actor=PRIVILEGED, remaining=0) == []
    assert _errors(_payload(), actor=PRIVILEGED, remaining=None) == []


def test_balance_check_skipped_when_dates_unusable() -> None:
    errors = _errors(_payload(end_date=None), remaining=0)
    assert [f for f, _ in errors] == ["end_date"]


def test_capabilities_from_permissions() -> None:
    employee = CurrentUser(id=uuid4(), role="EMPLOYEE", permissions={"leave": {"read": True, "create": True}})
    actor = actor_from_user(employee)
    assert not actor.can_approve
    assert not actor.can_backdate
    assert not actor.can_apply_for_others

    hr = CurrentUser(
        id=uuid4(),
        role="HR",
        permissions={"leave": {"create": True, "approve": True, "edit": True}, "employees": {"read": True}},
    )
    actor = actor_from_user(hr)
    assert actor.can_approve
    assert actor.can_backdate and actor.can_exceed_balance and actor.can_cancel_any
    assert actor.can_apply_for_others
    assert not actor.can_view_all


def test_admin_role_has_every_capability() -> None:
    actor = actor_from_user(CurrentUser(id=uuid4(), role="ADMIN", permissions={}))
    assert actor.can_approve and actor.can_view_all and actor.can_cancel_any
