"""Submission rules for leave applications.

One pure function used by both the submit endpoint and the dry-run validate
endpoint, so a client never has to duplicate the rules. Checks run in a fixed
order and every failure is reported against the field it concerns.
"""

from datetime import date
from typing import List, Optional

from hrms.core.exceptions import FieldError, InvalidDateRange

from .calculator import calculate_leave_days
from .capabilities import LeaveActor
from .schemas import LeaveApplicationCreate


def insufficient_balance_message(available: int, requested: int) -> str:
    return f"Not enough leave balance. Available: {max(available, 0)} days, Requested: {requested} days."


def validate_leave_submission(
    payload: LeaveApplicationCreate,
    actor: LeaveActor,
    today: date,
    *,
    leave_type_exists: bool = True,
    remaining_days: Optional[int] = None,
) -> List[FieldError]:
    """Return the ordered list of field errors for a submission; empty means valid.

    remaining_days is the employee's remaining balance for the leave type in the
    year of start_date, or None when no balance row exists.
    """
    errors: List[FieldError] = []

    leave_type_ok = False
    if payload.leave_type_id is None:
        errors.append(FieldError("leave_type_id", "The leave type field is required."))
    elif not leave_type_exists:
        errors.append(FieldError("leave_type_id", "The selected leave type is invalid."))
    else:
        leave_type_ok = True

    days: Optional[int] = None
    if payload.start_date is None:
        errors.append(FieldError("start_date", "The start date field is required."))
    if payload.end_date is None:
        errors.append(FieldError("end_date", "The end date field is required."))
    if payload.start_date is not None and payload.end_date is not None:
        try:
            days = calculate_leave_days(payload.start_date, payload.end_date)
        except InvalidDateRange as exc:
            errors.extend(exc.errors)

    if payload.start_date is not None and not actor.can_backdate and payload.start_date < today:
        errors.append(FieldError("start_date", "The start date cannot be in the past."))

    if not (payload.reason or "").strip():
        errors.append(FieldError("reason", "The reason field is required."))

    if days is not None and leave_type_ok and not actor.can_exceed_balance:
        if remaining_days is None:
            errors.append(FieldError("leave_type_id", "You do not have a leave balance for this leave type."))
        elif remaining_days < days:
            errors.append(FieldError("leave_type_id", insufficient_balance_message(remaining_days, days)))

    return errors
