# Overview: Service-layer operations for job cards; billable work records optionally tied to a work session.

"""
Job Card Service

WHY: A job card records one unit of billable work: which catalog job, how
it was paid, and (optionally) the work session it happened in.

RULES:
- payment_amount >= 0
- payment_method 'none' requires payment_amount 0
- work_log_id must be a WorkSession of the same staff relation; cross-staff
  references are rejected
- job_id must exist in the job catalog for the same business

Staff create cards for themselves (CREATE_JOB_CARDS). Corrections and
deletes are owner-side actions (MANAGE_JOB_CARDS). Billing aggregation is
someone else's concern; creating a card writes the card and nothing else.
"""

from __future__ import annotations

from flask import current_app

from .. import time_utils
from ..extensions import db
from ..errors import (
    JobCardAlreadyCompleted,
    JobCardNotFound,
    StaffRelationNotFound,
    ValidationError,
)
from ..models import JobCard, StaffRelation, WorkSession
from ..models.staff import RELATION_ACTIVE
from ..models.worklogs import PAYMENT_METHODS, PAYMENT_NONE
from ..permissions import Capability
from ..validation import clean_text, parse_amount, require_choice, require_id
from . import catalog_service
from .concurrency import compare_and_set, reload
from .identity_service import IdentityContext
from .permission_service import log_security_event, require_permission, require_relation_access


# Fields an owner-side correction may change
CORRECTABLE_FIELDS = {"job_id", "payment_method", "payment_amount", "notes"}


def validate_payment(payment_method, payment_amount):
    """Return (method, amount) or raise ValidationError."""
    method = require_choice(payment_method, PAYMENT_METHODS, "payment_method")
    amount = parse_amount(payment_amount, "payment_amount")
    if method == PAYMENT_NONE and amount != 0:
        raise ValidationError("payment_amount must be 0 when payment_method is none")
    return method, amount


def _require_job(job_id, business_id: str) -> str:
    job_id = require_id(job_id, "job_id")
    job = catalog_service.get_job(job_id)
    if job is None or job.business_id != business_id:
        raise ValidationError("job_id does not reference a job of this business")
    return job_id


def _require_work_log(work_log_id, relation: StaffRelation) -> str | None:
    if work_log_id is None:
        return None
    work_log_id = require_id(work_log_id, "work_log_id")
    session = db.session.get(WorkSession, work_log_id)
    if session is None or session.staff_relation_id != relation.id:
        raise ValidationError("work_log_id must reference a work session of the same staff member")
    return work_log_id


def create(
    staff_relation_id: str,
    job_id: str,
    payment_method: str,
    payment_amount,
    notes: str | None = None,
    work_log_id: str | None = None,
    *,
    caller: IdentityContext,
) -> JobCard:
    """
    Record a job card for a staff relation.

    Raises StaffRelationNotFound, PermissionDenied, ValidationError.
    """
    relation = db.session.get(StaffRelation, staff_relation_id) if staff_relation_id else None
    if relation is None:
        raise StaffRelationNotFound()

    require_relation_access(
        caller,
        relation,
        Capability.CREATE_JOB_CARDS,
        manager_capability=Capability.MANAGE_JOB_CARDS,
        resource="job_card.create",
    )
    if relation.status != RELATION_ACTIVE:
        raise ValidationError("Staff member is not active")

    method, amount = validate_payment(payment_method, payment_amount)
    job_id = _require_job(job_id, relation.business_id)
    work_log_id = _require_work_log(work_log_id, relation)

    card = JobCard(
        staff_relation_id=relation.id,
        business_id=relation.business_id,
        job_id=job_id,
        work_log_id=work_log_id,
        start_time=time_utils.utcnow(),
        payment_method=method,
        payment_amount=amount,
        notes=clean_text(notes, "notes"),
    )
    db.session.add(card)
    db.session.commit()

    current_app.logger.info("Job card %s created for staff relation %s", card.id, relation.id)
    return card


def get_job_card(job_card_id: str, business_id: str) -> JobCard:
    """Fetch within a tenant. Another tenant's card reads as not found."""
    card = db.session.get(JobCard, job_card_id) if job_card_id else None
    if card is None or card.business_id != business_id:
        raise JobCardNotFound()
    return card


def delete(job_card_id: str, requesting_business_id: str, *, caller: IdentityContext) -> None:
    """
    Delete a job card on owner-side request.

    Raises JobCardNotFound (absent or another business) or PermissionDenied.
    """
    card = db.session.get(JobCard, job_card_id) if job_card_id else None
    if card is None:
        raise JobCardNotFound()

    if card.business_id != requesting_business_id:
        log_security_event(
            identity_id=caller.identity_id if caller else None,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            resource="job_card",
            action="delete",
            reason=f"Job card {job_card_id} belongs to another business",
            business_id=requesting_business_id,
        )
        raise JobCardNotFound()

    require_permission(caller, requesting_business_id, Capability.MANAGE_JOB_CARDS, resource="job_card.delete")

    db.session.delete(card)
    db.session.commit()
    current_app.logger.info("Job card %s deleted", job_card_id)


def complete(job_card_id: str, business_id: str, *, caller: IdentityContext) -> JobCard:
    """Set end_time once. A second completion raises JobCardAlreadyCompleted."""
    card = get_job_card(job_card_id, business_id)
    relation = db.session.get(StaffRelation, card.staff_relation_id)
    require_relation_access(
        caller,
        relation,
        Capability.CREATE_JOB_CARDS,
        manager_capability=Capability.MANAGE_JOB_CARDS,
        resource="job_card.complete",
    )

    end_time = time_utils.utcnow()
    if end_time < card.start_time:
        raise ValidationError("end_time must not be before start_time")

    moved = compare_and_set(
        db.session.query(JobCard).filter(
            JobCard.id == card.id,
            JobCard.end_time.is_(None),
        ),
        {"end_time": end_time, "updated_at": end_time},
    )
    if not moved:
        db.session.rollback()
        raise JobCardAlreadyCompleted()

    db.session.commit()
    return reload(JobCard, job_card_id)


def update(job_card_id: str, business_id: str, changes: dict, *, caller: IdentityContext) -> JobCard:
    """
    Owner-side correction of an existing card.

    Only CORRECTABLE_FIELDS may change; payment invariants are re-checked
    against the merged result.
    """
    card = get_job_card(job_card_id, business_id)
    require_permission(caller, business_id, Capability.MANAGE_JOB_CARDS, resource="job_card.update")

    if not isinstance(changes, dict) or not changes:
        raise ValidationError("No changes supplied")

    unknown = set(changes) - CORRECTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

    method, amount = validate_payment(
        changes.get("payment_method", card.payment_method),
        changes.get("payment_amount", card.payment_amount),
    )

    if "job_id" in changes:
        card.job_id = _require_job(changes["job_id"], business_id)
    if "notes" in changes:
        card.notes = clean_text(changes["notes"], "notes")
    card.payment_method = method
    card.payment_amount = amount

    db.session.commit()
    return card


def list_job_cards(
    business_id: str,
    *,
    staff_relation_id: str | None = None,
    work_log_id: str | None = None,
    limit: int = 500,
) -> list[JobCard]:
    query = db.session.query(JobCard).filter_by(business_id=business_id)
    if staff_relation_id:
        query = query.filter_by(staff_relation_id=staff_relation_id)
    if work_log_id:
        query = query.filter_by(work_log_id=work_log_id)
    return query.order_by(JobCard.created_at.desc()).limit(limit).all()

