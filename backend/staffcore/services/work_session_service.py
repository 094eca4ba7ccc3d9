# Overview: Service-layer operations for work sessions; clock-in/clock-out with one active session per staff relation.

"""
Work Session Manager

WHY: Staff clock in to open a work session and clock out to close it.
Closed sessions carry the earnings for the period and are never reopened.

EXCLUSIVITY:
- start(): the insert itself is the check. A partial unique index on
  (staff_relation_id) WHERE status='active' rejects a second active row in
  the same transaction as the insert; the IntegrityError becomes
  DuplicateActiveSession carrying the existing session id.
- end(): conditional UPDATE WHERE status='active'. A second concurrent end
  matches no row and gets SessionAlreadyCompleted; the first end's
  end_time and earnings are untouched.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .. import time_utils
from ..extensions import db
from ..errors import (
    DuplicateActiveSession,
    SessionAlreadyCompleted,
    SessionNotFound,
    StaffRelationNotFound,
    ValidationError,
)
from ..models import StaffRelation, WorkSession
from ..models.staff import RELATION_ACTIVE
from ..models.worklogs import SESSION_ACTIVE, SESSION_COMPLETED
from ..permissions import Capability
from ..validation import CENTS, clean_text, parse_amount
from .concurrency import compare_and_set, reload
from .identity_service import IdentityContext
from .permission_service import require_relation_access


def _get_relation(staff_relation_id: str) -> StaffRelation:
    relation = db.session.get(StaffRelation, staff_relation_id) if staff_relation_id else None
    if relation is None:
        raise StaffRelationNotFound()
    return relation


def get_active(staff_relation_id: str) -> WorkSession | None:
    """The active session for a staff relation, or None. Pure read."""
    return db.session.query(WorkSession).filter_by(
        staff_relation_id=staff_relation_id,
        status=SESSION_ACTIVE,
    ).first()


def get_session(session_id: str, business_id: str) -> WorkSession:
    """Fetch within a tenant. Another tenant's session reads as not found."""
    session = db.session.get(WorkSession, session_id) if session_id else None
    if session is None or session.business_id != business_id:
        raise SessionNotFound()
    return session


def compute_default_earnings(relation: StaffRelation, start_time: datetime, end_time: datetime) -> Decimal:
    """hourly_rate x worked hours, rounded to cents; 0.00 without a rate."""
    if relation.hourly_rate is None:
        return Decimal("0.00")
    seconds = Decimal(int((end_time - start_time).total_seconds()))
    hours = seconds / Decimal(3600)
    return (Decimal(relation.hourly_rate) * hours).quantize(CENTS, rounding=ROUND_HALF_UP)


def start(staff_relation_id: str, *, caller: IdentityContext, notes: str | None = None) -> WorkSession:
    """
    Open a work session (clock in).

    Raises StaffRelationNotFound, PermissionDenied, ValidationError for an
    inactive relation, DuplicateActiveSession if one is already open.
    """
    relation = _get_relation(staff_relation_id)
    require_relation_access(caller, relation, Capability.CLOCK_IN, resource="work_session.start")

    if relation.status != RELATION_ACTIVE:
        raise ValidationError("Staff member is not active")

    relation_id = relation.id
    session = WorkSession(
        staff_relation_id=relation_id,
        business_id=relation.business_id,
        start_time=time_utils.utcnow(),
        status=SESSION_ACTIVE,
        notes=clean_text(notes, "notes"),
    )
    db.session.add(session)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = get_active(relation_id)
        current_app.logger.info(
            "Rejected second active session for staff relation %s", relation_id,
        )
        raise DuplicateActiveSession(existing.id if existing else None)

    current_app.logger.info("Work session %s started for staff relation %s", session.id, relation_id)
    return session


def _complete(session: WorkSession, relation: StaffRelation, earnings, notes) -> WorkSession:
    """
    Atomic active -> completed transition. Does not commit.

    Raises SessionAlreadyCompleted when the row is no longer active.
    """
    end_time = time_utils.utcnow()
    if end_time <= session.start_time:
        raise ValidationError("end_time must be after start_time")

    amount = parse_amount(earnings, "earnings", allow_none=True)
    if amount is None:
        amount = compute_default_earnings(relation, session.start_time, end_time)

    values = {
        "status": SESSION_COMPLETED,
        "end_time": end_time,
        "earnings": amount,
    }
    if notes is not None:
        values["notes"] = clean_text(notes, "notes")

    moved = compare_and_set(
        db.session.query(WorkSession).filter(
            WorkSession.id == session.id,
            WorkSession.status == SESSION_ACTIVE,
        ),
        values,
    )
    if not moved:
        raise SessionAlreadyCompleted()
    return session


def end(
    session_id: str,
    earnings=None,
    notes: str | None = None,
    *,
    caller: IdentityContext,
) -> WorkSession:
    """
    Close a work session (clock out).

    earnings defaults to hourly_rate x duration (0.00 without a rate).
    Raises SessionNotFound, SessionAlreadyCompleted, PermissionDenied,
    ValidationError.
    """
    session = db.session.get(WorkSession, session_id) if session_id else None
    if session is None:
        raise SessionNotFound()

    relation = _get_relation(session.staff_relation_id)
    require_relation_access(caller, relation, Capability.CLOCK_IN, resource="work_session.end")

    if session.status != SESSION_ACTIVE:
        raise SessionAlreadyCompleted()

    try:
        _complete(session, relation, earnings, notes)
    except SessionAlreadyCompleted:
        db.session.rollback()
        current_app.logger.info("Lost end race for work session %s", session_id)
        raise

    db.session.commit()
    return reload(WorkSession, session_id)


def close_active_for_relation(relation: StaffRelation) -> WorkSession | None:
    """
    End the relation's active session with default earnings, if any.

    Used when a relation is deactivated under the auto_close policy.
    Does not commit; a concurrent clock-out simply wins.
    """
    session = get_active(relation.id)
    if session is None:
        return None
    try:
        return _complete(session, relation, None, None)
    except SessionAlreadyCompleted:
        return None


def list_sessions(
    *,
    business_id: str | None = None,
    staff_relation_id: str | None = None,
    status: str | None = None,
    limit: int = 500,
) -> list[WorkSession]:
    """Work history, newest first."""
    query = db.session.query(WorkSession)
    if business_id:
        query = query.filter_by(business_id=business_id)
    if staff_relation_id:
        query = query.filter_by(staff_relation_id=staff_relation_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(WorkSession.start_time.desc()).limit(limit).all()
