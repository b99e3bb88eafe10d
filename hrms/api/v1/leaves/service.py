"""Leave applications: submit, approve, reject, cancel, list, report.

Every transition re-reads the application row with a write lock, checks it is
still in the expected status and commits the status change together with any
balance movement, so an application is deducted at most once.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.v1.employees.service import get_employee
from hrms.api.v1.leave_balances import service as ledger
from hrms.core.config import settings
from hrms.core.exceptions import (
    FieldError,
    FieldValidationError,
    InvalidDateRange,
    NotFoundError,
    PermissionDenied,
    PreconditionFailed,
)
from hrms.core.models import Employee, LeaveApplication, LeaveApproval, LeaveType
from hrms.core.models.leave_application import (
    LEAVE_STATUS_APPROVED,
    LEAVE_STATUS_CANCELLED,
    LEAVE_STATUS_PENDING,
    LEAVE_STATUS_REJECTED,
)
from hrms.core.models.leave_approval import APPROVAL_STATUS_APPROVED, APPROVAL_STATUS_REJECTED
from hrms.db.session import atomic

from .calculator import calculate_leave_days
from .capabilities import LeaveActor
from .schemas import (
    LeaveApplicationCreate,
    LeaveApplicationDetail,
    LeaveApplicationResponse,
    LeaveApprovalResponse,
    LeaveReportResponse,
    LeaveReportSummary,
    LeaveValidationResult,
)
from .validation import validate_leave_submission

logger = logging.getLogger(__name__)

AUTO_APPROVE_COMMENT = "Auto-approved by administrator"
REPORT_DEFAULT_DAYS = 30


def _to_response(app: LeaveApplication) -> LeaveApplicationResponse:
    return LeaveApplicationResponse.model_validate(app)


def _log_transition(app: LeaveApplication, before: str, actor: LeaveActor) -> None:
    logger.info(
        "leave status transition: id=%s employee_id=%s before=%s after=%s days=%s actor=%s",
        app.id,
        app.employee_id,
        before,
        app.status,
        app.days,
        actor.user_id,
    )


async def _resolve_employee(db: AsyncSession, actor: LeaveActor, employee_id: Optional[UUID]) -> UUID:
    """The employee the application is for: the caller's own unless another is named."""
    if employee_id is None or actor.owns(employee_id):
        if actor.employee_id is None:
            raise FieldValidationError.single("employee_id", "No employee record is linked to this user.")
        return actor.employee_id
    if not actor.can_apply_for_others:
        logger.warning("leave apply for other employee refused: actor=%s employee_id=%s", actor.user_id, employee_id)
        raise PermissionDenied("You can only apply for leave for yourself.")
    employee = await get_employee(db, employee_id)
    return employee.id


async def _collect_errors(
    db: AsyncSession,
    actor: LeaveActor,
    employee_id: UUID,
    payload: LeaveApplicationCreate,
    today: date,
) -> List[FieldError]:
    leave_type_exists = False
    if payload.leave_type_id is not None:
        leave_type_exists = await db.get(LeaveType, payload.leave_type_id) is not None

    remaining: Optional[int] = None
    if leave_type_exists and payload.start_date is not None:
        remaining = await ledger.get_remaining_days(
            db, employee_id, payload.leave_type_id, payload.start_date.year
        )

    return validate_leave_submission(
        payload,
        actor,
        today,
        leave_type_exists=leave_type_exists,
        remaining_days=remaining,
    )


async def validate_submission(
    db: AsyncSession,
    actor: LeaveActor,
    payload: LeaveApplicationCreate,
    today: Optional[date] = None,
) -> LeaveValidationResult:
    """Dry run of submit: same checks, nothing written."""
    employee_id = await _resolve_employee(db, actor, payload.employee_id)
    errors = await _collect_errors(db, actor, employee_id, payload, today or date.today())
    days: Optional[int] = None
    if payload.start_date is not None and payload.end_date is not None and payload.end_date >= payload.start_date:
        days = calculate_leave_days(payload.start_date, payload.end_date)
    return LeaveValidationResult(valid=not errors, days=days, errors=[e.as_dict() for e in errors])


def _record_decision(
    db: AsyncSession,
    app: LeaveApplication,
    actor: LeaveActor,
    approval_status: str,
    comments: Optional[str],
) -> None:
    app.approved_by = actor.user_id
    app.decided_at = datetime.utcnow()
    db.add(
        LeaveApproval(
            leave_application_id=app.id,
            approved_by=actor.user_id,
            status=approval_status,
            comments=comments,
        )
    )


async def submit_leave_application(
    db: AsyncSession,
    actor: LeaveActor,
    payload: LeaveApplicationCreate,
    today: Optional[date] = None,
) -> LeaveApplicationResponse:
    """Validate and store a leave application as pending (or approved when auto-approved)."""
    today = today or date.today()
    employee_id = await _resolve_employee(db, actor, payload.employee_id)

    async with atomic(db):
        errors = await _collect_errors(db, actor, employee_id, payload, today)
        if errors:
            logger.warning(
                "leave application refused: employee_id=%s errors=%s",
                employee_id,
                [e.as_dict() for e in errors],
            )
            raise FieldValidationError(errors)

        app = LeaveApplication(
            employee_id=employee_id,
            leave_type_id=payload.leave_type_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=calculate_leave_days(payload.start_date, payload.end_date),
            reason=payload.reason.strip(),
            status=LEAVE_STATUS_PENDING,
            documents=[d.model_dump() for d in payload.documents] if payload.documents else None,
            created_by=actor.user_id,
        )
        db.add(app)
        await db.flush()

        if payload.auto_approve and actor.can_approve and not actor.owns(employee_id):
            await ledger.deduct(db, app.employee_id, app.leave_type_id, app.start_date.year, app.days)
            app.status = LEAVE_STATUS_APPROVED
            _record_decision(db, app, actor, APPROVAL_STATUS_APPROVED, AUTO_APPROVE_COMMENT)

    await db.refresh(app)
    logger.info(
        "leave application submitted: id=%s employee_id=%s leave_type_id=%s days=%s status=%s",
        app.id,
        app.employee_id,
        app.leave_type_id,
        app.days,
        app.status,
    )
    return _to_response(app)


async def _lock_application(db: AsyncSession, application_id: UUID) -> LeaveApplication:
    result = await db.execute(
        select(LeaveApplication).where(LeaveApplication.id == application_id).with_for_update()
    )
    app = result.scalar_one_or_none()
    if not app:
        raise NotFoundError("Leave application not found")
    return app


def _require_pending(app: LeaveApplication) -> None:
    if app.status != LEAVE_STATUS_PENDING:
        logger.warning("leave transition refused: id=%s status=%s", app.id, app.status)
        raise PreconditionFailed("This leave application is not pending approval.")


def _require_approver(actor: LeaveActor, app: LeaveApplication) -> None:
    if not actor.can_approve:
        raise PermissionDenied()
    if actor.owns(app.employee_id):
        logger.warning("self approval refused: id=%s actor=%s", app.id, actor.user_id)
        raise PermissionDenied("You cannot approve or reject your own leave application.")


async def approve_leave(
    db: AsyncSession,
    actor: LeaveActor,
    application_id: UUID,
    comments: Optional[str] = None,
) -> LeaveApplicationResponse:
    """pending -> approved; deducts the days from the balance of the start date's year."""
    async with atomic(db):
        app = await _lock_application(db, application_id)
        _require_approver(actor, app)
        _require_pending(app)
        before = app.status
        await ledger.deduct(db, app.employee_id, app.leave_type_id, app.start_date.year, app.days)
        app.status = LEAVE_STATUS_APPROVED
        _record_decision(db, app, actor, APPROVAL_STATUS_APPROVED, comments)
    await db.refresh(app)
    _log_transition(app, before, actor)
    return _to_response(app)


async def reject_leave(
    db: AsyncSession,
    actor: LeaveActor,
    application_id: UUID,
    rejection_reason: Optional[str],
) -> LeaveApplicationResponse:
    """pending -> rejected. Balances are untouched."""
    reason = (rejection_reason or "").strip()
    async with atomic(db):
        app = await _lock_application(db, application_id)
        _require_approver(actor, app)
        _require_pending(app)
        if not reason:
            raise FieldValidationError.single("rejection_reason", "The rejection reason field is required.")
        before = app.status
        app.status = LEAVE_STATUS_REJECTED
        app.rejection_reason = reason
        _record_decision(db, app, actor, APPROVAL_STATUS_REJECTED, reason)
    await db.refresh(app)
    _log_transition(app, before, actor)
    return _to_response(app)


async def cancel_leave(
    db: AsyncSession,
    actor: LeaveActor,
    application_id: UUID,
    allow_cancel_approved: Optional[bool] = None,
) -> LeaveApplicationResponse:
    """pending -> cancelled by the owner or a privileged actor.

    approved -> cancelled only when allowed by configuration and the actor may
    cancel any application; the days go back to the balance.
    """
    if allow_cancel_approved is None:
        allow_cancel_approved = settings.leave_allow_cancel_approved

    async with atomic(db):
        app = await _lock_application(db, application_id)
        if not (actor.owns(app.employee_id) or actor.can_cancel_any):
            logger.warning("leave cancel refused: id=%s actor=%s", app.id, actor.user_id)
            raise PermissionDenied("You can only cancel your own leave applications.")
        before = app.status
        if app.status == LEAVE_STATUS_APPROVED and allow_cancel_approved and actor.can_cancel_any:
            await ledger.restore(db, app.employee_id, app.leave_type_id, app.start_date.year, app.days)
        elif app.status != LEAVE_STATUS_PENDING:
            logger.warning("leave cancel refused: id=%s status=%s", app.id, app.status)
            raise PreconditionFailed("Only pending leave applications can be cancelled.")
        app.status = LEAVE_STATUS_CANCELLED
        app.cancelled_at = datetime.utcnow()
    await db.refresh(app)
    _log_transition(app, before, actor)
    return _to_response(app)


def _sees_all(actor: LeaveActor) -> bool:
    return actor.can_view_all or actor.can_approve


def _filtered(
    actor: LeaveActor,
    status: Optional[str] = None,
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    search: Optional[str] = None,
    department: Optional[str] = None,
):
    stmt = select(LeaveApplication)
    if not _sees_all(actor):
        stmt = stmt.where(LeaveApplication.employee_id == actor.employee_id)
    elif employee_id is not None:
        stmt = stmt.where(LeaveApplication.employee_id == employee_id)
    if status:
        stmt = stmt.where(LeaveApplication.status == status)
    if leave_type_id is not None:
        stmt = stmt.where(LeaveApplication.leave_type_id == leave_type_id)
    if search or department:
        stmt = stmt.join(Employee, Employee.id == LeaveApplication.employee_id)
    if department:
        stmt = stmt.where(func.lower(Employee.department) == department.strip().lower())
    if search:
        term = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Employee.first_name.ilike(term),
                Employee.last_name.ilike(term),
                Employee.employee_code.ilike(term),
            )
        )
    return stmt


async def list_applications(
    db: AsyncSession,
    actor: LeaveActor,
    status: Optional[str] = None,
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    search: Optional[str] = None,
    department: Optional[str] = None,
) -> List[LeaveApplicationResponse]:
    """Applications visible to the actor; without view rights only the actor's own."""
    if not _sees_all(actor) and actor.employee_id is None:
        return []
    stmt = _filtered(
        actor,
        status=status,
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        search=search,
        department=department,
    )
    if from_date is not None:
        stmt = stmt.where(LeaveApplication.start_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(LeaveApplication.end_date <= to_date)
    result = await db.execute(stmt.order_by(LeaveApplication.applied_at.desc()))
    return [_to_response(a) for a in result.scalars().all()]


async def get_application_detail(db: AsyncSession, actor: LeaveActor, application_id: UUID) -> LeaveApplicationDetail:
    app = await db.get(LeaveApplication, application_id)
    if not app or not (_sees_all(actor) or actor.owns(app.employee_id)):
        raise NotFoundError("Leave application not found")
    approvals = await db.execute(
        select(LeaveApproval)
        .where(LeaveApproval.leave_application_id == app.id)
        .order_by(LeaveApproval.approved_at)
    )
    return LeaveApplicationDetail(
        **_to_response(app).model_dump(),
        approvals=[LeaveApprovalResponse.model_validate(a) for a in approvals.scalars().all()],
    )


def _report_window(start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
    end = end_date or date.today()
    start = start_date or end - timedelta(days=REPORT_DEFAULT_DAYS)
    if end < start:
        raise InvalidDateRange()
    return start, end


async def leave_report(
    db: AsyncSession,
    actor: LeaveActor,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    employee_id: Optional[UUID] = None,
    leave_type_id: Optional[UUID] = None,
    department: Optional[str] = None,
) -> LeaveReportResponse:
    """Applications starting inside the window (default the last 30 days) with status counts."""
    start, end = _report_window(start_date, end_date)
    if not _sees_all(actor) and actor.employee_id is None:
        apps: List[LeaveApplication] = []
    else:
        stmt = _filtered(
            actor,
            status=status,
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            department=department,
        ).where(
            LeaveApplication.start_date >= start,
            LeaveApplication.start_date <= end,
        )
        result = await db.execute(stmt.order_by(LeaveApplication.start_date))
        apps = list(result.scalars().all())

    summary = LeaveReportSummary(total=len(apps), total_days=sum(a.days for a in apps))
    for a in apps:
        if a.status in (LEAVE_STATUS_PENDING, LEAVE_STATUS_APPROVED, LEAVE_STATUS_REJECTED, LEAVE_STATUS_CANCELLED):
            setattr(summary, a.status, getattr(summary, a.status) + 1)
    return LeaveReportResponse(
        start_date=start,
        end_date=end,
        summary=summary,
        applications=[_to_response(a) for a in apps],
    )
