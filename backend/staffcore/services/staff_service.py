# Overview: Service-layer operations for staff relations; permission edits and status toggles by the owning business.

"""
Staff Relation Management

WHY: After an invitation is accepted the business keeps editing the
relation: capability grants, active/inactive, hourly rate.

SECURITY: Every mutation requires MANAGE_STAFF in the relation's business.
Co-admins pass that check but can never grant owner-only capabilities
(the permission map validator rejects them).

INACTIVE SESSIONS: what happens to an open work session when its relation
is deactivated is configuration, INACTIVE_SESSION_POLICY:
- "leave_open" (default): the session stays active until a manager ends it
- "auto_close": the session is ended in the same transaction
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import StaffAlreadyActive, StaffRelationNotFound, ValidationError
from ..models import StaffRelation
from ..models.staff import RELATION_ACTIVE, RELATION_INACTIVE, RELATION_STATUSES
from ..permissions import Capability, validate_permission_map
from ..validation import parse_amount, require_choice
from .identity_service import IdentityContext
from .permission_service import require_permission
from . import work_session_service


POLICY_LEAVE_OPEN = "leave_open"
POLICY_AUTO_CLOSE = "auto_close"
SESSION_POLICIES = (POLICY_LEAVE_OPEN, POLICY_AUTO_CLOSE)

# Statuses a business can toggle to
SETTABLE_STATUSES = (RELATION_ACTIVE, RELATION_INACTIVE)


def get_relation(relation_id: str, business_id: str | None = None) -> StaffRelation:
    relation = db.session.get(StaffRelation, relation_id) if relation_id else None
    if relation is None or (business_id is not None and relation.business_id != business_id):
        raise StaffRelationNotFound()
    return relation


def get_active_relation(identity_id: str, business_id: str) -> StaffRelation | None:
    return db.session.query(StaffRelation).filter_by(
        staff_identity_id=identity_id,
        business_id=business_id,
        status=RELATION_ACTIVE,
    ).first()


def list_relations(business_id: str, status: str | None = None) -> list[StaffRelation]:
    if status is not None:
        require_choice(status, RELATION_STATUSES, "status")
    query = db.session.query(StaffRelation).filter_by(business_id=business_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(StaffRelation.created_at.desc()).all()


def update_permissions(relation_id: str, changes: dict, *, caller: IdentityContext) -> StaffRelation:
    """Merge validated capability changes into the stored map."""
    relation = get_relation(relation_id)
    require_permission(caller, relation.business_id, Capability.MANAGE_STAFF, resource="staff.permissions")

    cleaned = validate_permission_map(changes)
    if not cleaned:
        raise ValidationError("No permission changes supplied")

    merged = dict(relation.permissions or {})
    merged.update(cleaned)
    # Reassign so the JSON column is flagged dirty
    relation.permissions = merged
    db.session.commit()
    return relation


def session_policy() -> str:
    policy = current_app.config.get("INACTIVE_SESSION_POLICY", POLICY_LEAVE_OPEN)
    if policy not in SESSION_POLICIES:
        raise ValidationError(f"INACTIVE_SESSION_POLICY must be one of: {', '.join(SESSION_POLICIES)}")
    return policy


def set_status(relation_id: str, status: str, *, caller: IdentityContext) -> StaffRelation:
    """
    Toggle a relation between active and inactive.

    Reactivation respects the one-active-relation-per-business rule.
    """
    require_choice(status, SETTABLE_STATUSES, "status")
    relation = get_relation(relation_id)
    require_permission(caller, relation.business_id, Capability.MANAGE_STAFF, resource="staff.status")

    if relation.status == status:
        return relation

    closed = None
    if status == RELATION_INACTIVE and session_policy() == POLICY_AUTO_CLOSE:
        closed = work_session_service.close_active_for_relation(relation)

    relation.status = status
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise StaffAlreadyActive("This person already has an active staff record in this business")

    if closed is not None:
        current_app.logger.info(
            "Auto-closed work session %s for deactivated staff relation %s", closed.id, relation.id,
        )
    return relation


def set_hourly_rate(relation_id: str, hourly_rate, *, caller: IdentityContext) -> StaffRelation:
    relation = get_relation(relation_id)
    require_permission(caller, relation.business_id, Capability.MANAGE_STAFF, resource="staff.hourly_rate")

    relation.hourly_rate = parse_amount(hourly_rate, "hourly_rate", allow_none=True)
    db.session.commit()
    return relation
