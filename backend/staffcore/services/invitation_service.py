# Overview: Service-layer operations for staff invitations; owns the pending -> accepted/expired state machine.

"""
Invitation Service

WHY: A business brings a staff member in with a single-use, time-boxed token.
The token travels as a URL parameter to the staff signup flow, which calls
verify() to render the offer and accept() on confirmation.

STATE MACHINE:
    pending --verify/accept after expires_at--> expired   (terminal)
    pending --accept----------------------------> accepted  (terminal)
    pending --cancel----------------------------> (row deleted)

No edge returns to pending.

CONCURRENCY:
- accept() claims the invitation with a conditional UPDATE
  (WHERE status='pending' AND expires_at > now) and inserts the
  StaffRelation in the same transaction. Two racing accepts produce one
  relation; the loser gets InvitationAlreadyAccepted.
- Expiry is lazy. The first reader after expires_at persists the flip to
  expired so later readers see the terminal state.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from urllib.parse import urlencode

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .. import time_utils
from ..extensions import db
from ..errors import (
    InvitationAlreadyAccepted,
    InvitationExpired,
    InvitationNotFound,
    PermissionDenied,
    StaffAlreadyActive,
    ValidationError,
)
from ..models import Business, Invitation, StaffRelation
from ..models.staff import (
    INVITATION_ACCEPTED,
    INVITATION_EXPIRED,
    INVITATION_PENDING,
    INVITATION_STATUSES,
    RELATION_ACTIVE,
)
from ..permissions import build_permission_map, validate_role
from ..validation import clean_text, normalize_email, require_choice, require_id
from . import notification_service
from .concurrency import compare_and_delete, compare_and_set, reload
from .identity_service import IdentityContext
from .permission_service import log_security_event


# Fresh tokens on unique-constraint collision (practically never needed)
TOKEN_ATTEMPTS = 3


def generate_invitation_token() -> str:
    """
    Opaque, unguessable token: 32 bytes from the OS CSPRNG, URL-safe.

    Never derived from ids or timestamps.
    """
    return secrets.token_urlsafe(32)


def invitation_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("INVITATION_TTL_HOURS", 48))


def build_invite_url(token: str) -> str:
    base = current_app.config.get("INVITE_BASE_URL", "")
    return f"{base}?{urlencode({'token': token})}"


def issue(
    business_id: str,
    email: str,
    proposed_role: str,
    proposed_permissions: dict | None = None,
    *,
    name: str | None = None,
    position: str | None = None,
    invited_by: str | None = None,
) -> Invitation:
    """
    Create a pending invitation and hand it to the notifier.

    proposed_permissions is validated against the capability set and merged
    over the role's defaults, so the stored map is complete.
    """
    email = normalize_email(email)
    role = validate_role(proposed_role)
    permissions = build_permission_map(role, proposed_permissions)
    name = clean_text(name, "name", max_length=255)
    position = clean_text(position, "position", max_length=255)

    business = db.session.get(Business, business_id) if business_id else None
    if business is None:
        raise ValidationError("Business not found")

    now = time_utils.utcnow()
    expires_at = now + invitation_ttl()

    for attempt in range(TOKEN_ATTEMPTS):
        invitation = Invitation(
            business_id=business.id,
            business_name=business.name,
            email=email,
            name=name,
            position=position,
            token=generate_invitation_token(),
            status=INVITATION_PENDING,
            proposed_role=role,
            proposed_permissions=permissions,
            invited_by_identity_id=invited_by,
            created_at=now,
            expires_at=expires_at,
        )
        db.session.add(invitation)
        try:
            db.session.commit()
            break
        except IntegrityError:
            db.session.rollback()
            if attempt >= TOKEN_ATTEMPTS - 1:
                raise

    current_app.logger.info(
        "Issued invitation %s for %s (business %s, role %s)",
        invitation.id, email, business.id, role,
    )
    notification_service.dispatch("invitation_issued", invitation, build_invite_url(invitation.token))
    return invitation


def _get_by_token(token) -> Invitation:
    if not isinstance(token, str) or not token.strip():
        raise InvitationNotFound()
    invitation = db.session.query(Invitation).filter_by(token=token.strip()).first()
    if invitation is None:
        raise InvitationNotFound()
    return invitation


def _mark_expired(invitation: Invitation) -> None:
    """Persist pending -> expired. No-op if someone else already moved it."""
    invitation_id = invitation.id
    flipped = compare_and_set(
        db.session.query(Invitation).filter(
            Invitation.id == invitation_id,
            Invitation.status == INVITATION_PENDING,
        ),
        {"status": INVITATION_EXPIRED},
    )
    db.session.commit()
    if flipped:
        current_app.logger.info("Invitation %s expired", invitation_id)


def _ensure_usable(invitation: Invitation) -> Invitation:
    """Raise the terminal-state error for an invitation, or return it."""
    if invitation.status == INVITATION_ACCEPTED:
        raise InvitationAlreadyAccepted()

    if invitation.status == INVITATION_EXPIRED:
        raise InvitationExpired()

    if time_utils.is_expired(invitation.expires_at):
        _mark_expired(invitation)
        raise InvitationExpired()

    return invitation


def verify(token: str) -> Invitation:
    """
    Look up an invitation for display. Does not commit to accepting.

    Raises InvitationNotFound, InvitationAlreadyAccepted or InvitationExpired.
    """
    return _ensure_usable(_get_by_token(token))


def accept(token: str, staff_identity_id: str) -> StaffRelation:
    """
    Accept an invitation and create its StaffRelation, all or nothing.
    """
    staff_identity_id = require_id(staff_identity_id, "staff_identity_id")
    invitation = verify(token)
    invitation_id = invitation.id

    now = time_utils.utcnow()
    claimed = compare_and_set(
        db.session.query(Invitation).filter(
            Invitation.id == invitation_id,
            Invitation.status == INVITATION_PENDING,
            Invitation.expires_at > now,
        ),
        {
            "status": INVITATION_ACCEPTED,
            "accepted_at": now,
            "accepted_by_identity_id": staff_identity_id,
        },
    )

    if not claimed:
        db.session.rollback()
        current = reload(Invitation, invitation_id)
        if current is None:
            # Cancelled between verify and claim
            raise InvitationNotFound()
        current_app.logger.info(
            "Lost accept race for invitation %s (status=%s)", invitation_id, current.status,
        )
        _ensure_usable(current)
        # Still pending and not overdue means the clock moved under us: treat as expired
        _mark_expired(current)
        raise InvitationExpired()

    relation = StaffRelation(
        staff_identity_id=staff_identity_id,
        business_id=invitation.business_id,
        invitation_id=invitation_id,
        role=invitation.proposed_role,
        status=RELATION_ACTIVE,
        permissions=dict(invitation.proposed_permissions or {}),
        name=invitation.name,
        email=invitation.email,
        position=invitation.position,
        created_at=now,
    )
    db.session.add(relation)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current = reload(Invitation, invitation_id)
        if current is not None and current.status == INVITATION_ACCEPTED:
            raise InvitationAlreadyAccepted()
        raise StaffAlreadyActive(
            "You are already an active staff member of this business",
        )

    current_app.logger.info(
        "Invitation %s accepted by %s; staff relation %s created",
        invitation_id, staff_identity_id, relation.id,
    )
    return relation


def get_invitation(invitation_id: str, business_id: str) -> Invitation:
    invitation = db.session.get(Invitation, invitation_id) if invitation_id else None
    if invitation is None or invitation.business_id != business_id:
        raise InvitationNotFound()
    return invitation


def _expire_overdue(business_id: str) -> int:
    """Flip every overdue pending invitation of a business to expired."""
    flipped = db.session.query(Invitation).filter(
        Invitation.business_id == business_id,
        Invitation.status == INVITATION_PENDING,
        Invitation.expires_at <= time_utils.utcnow(),
    ).update({"status": INVITATION_EXPIRED}, synchronize_session=False)
    db.session.commit()
    return flipped


def list_invitations(business_id: str, status: str | None = None) -> list[Invitation]:
    """Invitations of a business, newest first; overdue ones read as expired."""
    if status is not None:
        require_choice(status, INVITATION_STATUSES, "status")

    _expire_overdue(business_id)

    query = db.session.query(Invitation).filter_by(business_id=business_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Invitation.created_at.desc()).all()


def _get_owned(
    invitation_id: str,
    requesting_business_id: str,
    action: str,
    caller: IdentityContext | None,
) -> Invitation:
    """Fetch an invitation the requesting business owns; log cross-tenant attempts."""
    invitation = db.session.get(Invitation, invitation_id) if invitation_id else None
    if invitation is None:
        raise InvitationNotFound()

    if invitation.business_id != requesting_business_id:
        log_security_event(
            identity_id=caller.identity_id if caller else None,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            resource="invitation",
            action=action,
            reason=f"Invitation {invitation_id} belongs to another business",
            business_id=requesting_business_id,
        )
        raise PermissionDenied("Invitation belongs to another business")
    return invitation


def cancel(
    invitation_id: str,
    requesting_business_id: str,
    *,
    caller: IdentityContext | None = None,
) -> None:
    """
    Delete a pending invitation owned by the requesting business.

    Raises InvitationNotFound if absent, PermissionDenied for another
    business's invitation or for one that is no longer pending.
    """
    invitation = _get_owned(invitation_id, requesting_business_id, "cancel", caller)

    if invitation.status != INVITATION_PENDING:
        raise PermissionDenied("Only pending invitations can be cancelled")

    deleted = compare_and_delete(
        db.session.query(Invitation).filter_by(id=invitation_id, status=INVITATION_PENDING)
    )
    if not deleted:
        # Accepted concurrently
        db.session.rollback()
        raise PermissionDenied("Only pending invitations can be cancelled")

    db.session.commit()
    current_app.logger.info("Invitation %s cancelled", invitation_id)


def resend(
    invitation_id: str,
    requesting_business_id: str,
    *,
    caller: IdentityContext | None = None,
) -> Invitation:
    """
    Re-dispatch the notice for a still-usable invitation.

    The expiry is not extended; an expired invitation needs a new issue().
    """
    invitation = _get_owned(invitation_id, requesting_business_id, "resend", caller)

    _ensure_usable(invitation)
    notification_service.dispatch("invitation_resent", invitation, build_invite_url(invitation.token))
    return invitation
