# Overview: Service-layer operations for permission; resolves capabilities and records denials.

"""
Permission Engine

WHY: Every work-session and job-card mutation, and every business-only
surface, asks one question: may this identity use this capability in this
business?

DESIGN PRINCIPLES:
- Fail closed: deny by default, require an explicit grant
- Unknown capability keys are "not granted", never an exception
- Read-only: has_permission() never writes and holds no shared state
- Log denials only: require_permission() records PERMISSION_DENIED events

RESOLUTION ORDER:
1. Business owner -> every capability
2. No active StaffRelation for (identity, business) -> nothing
3. co-admin -> everything except the owner-only reserved set
4. staff -> exactly the stored permission map, absent keys denied
"""

from __future__ import annotations

from ..extensions import db
from ..errors import PermissionDenied
from ..models import Business, StaffRelation, SecurityEvent
from ..models.staff import RELATION_ACTIVE
from ..permissions import (
    Capability,
    OWNER_ONLY_CAPABILITIES,
    ROLE_CO_ADMIN,
    ROLE_STAFF,
    parse_capability,
)
from .identity_service import IdentityContext


def log_security_event(
    identity_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    business_id: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - PERMISSION_DENIED
    - CROSS_TENANT_ACCESS_DENIED
    """
    event = SecurityEvent(
        identity_id=identity_id,
        business_id=business_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
    )

    db.session.add(event)
    db.session.commit()

    return event


def is_business_owner(identity: IdentityContext | None, business_id: str | None) -> bool:
    if identity is None or not business_id:
        return False
    owner_id = db.session.query(Business.owner_identity_id).filter_by(id=business_id).scalar()
    return owner_id is not None and owner_id == identity.identity_id


def get_active_relation(identity_id: str, business_id: str) -> StaffRelation | None:
    return db.session.query(StaffRelation).filter_by(
        staff_identity_id=identity_id,
        business_id=business_id,
        status=RELATION_ACTIVE,
    ).first()


def relation_grants(relation: StaffRelation | None, capability: Capability | None) -> bool:
    """Whether an already-loaded relation grants a capability."""
    if relation is None or capability is None:
        return False
    if relation.status != RELATION_ACTIVE:
        return False

    if relation.role == ROLE_CO_ADMIN:
        return capability not in OWNER_ONLY_CAPABILITIES

    if relation.role == ROLE_STAFF:
        if capability in OWNER_ONLY_CAPABILITIES:
            return False
        return (relation.permissions or {}).get(capability.value) is True

    return False


def has_permission(identity: IdentityContext | None, business_id: str | None, feature_key) -> bool:
    """
    Check whether identity may use feature_key within business_id.

    Returns True or False; never raises for unknown keys or missing rows.
    """
    if identity is None or not business_id:
        return False

    if is_business_owner(identity, business_id):
        return True

    capability = parse_capability(feature_key)
    if capability is None:
        return False

    relation = get_active_relation(identity.identity_id, business_id)
    return relation_grants(relation, capability)


def get_effective_permissions(identity: IdentityContext | None, business_id: str | None) -> dict[str, bool]:
    """Every capability resolved for the caller (drives navigation gating)."""
    if is_business_owner(identity, business_id):
        return {c.value: True for c in Capability}

    relation = None
    if identity is not None and business_id:
        relation = get_active_relation(identity.identity_id, business_id)
    return {c.value: relation_grants(relation, c) for c in Capability}


def require_permission(
    identity: IdentityContext | None,
    business_id: str | None,
    feature_key,
    resource: str | None = None,
) -> None:
    """
    Require a capability, raise PermissionDenied if not granted.

    Only denials are logged to security_events.
    """
    if has_permission(identity, business_id, feature_key):
        return

    key = feature_key.value if isinstance(feature_key, Capability) else str(feature_key)
    log_security_event(
        identity_id=identity.identity_id if identity else None,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=key,
        reason=f"Missing permission: {key}",
        business_id=business_id,
    )
    raise PermissionDenied(f"Permission denied: {key}", required_permission=key)


def require_relation_access(
    identity: IdentityContext | None,
    relation: StaffRelation,
    capability: Capability,
    manager_capability: Capability = Capability.MANAGE_STAFF,
    resource: str | None = None,
) -> None:
    """
    Staff act on their own relation with `capability`; managers act on any
    relation in the business with `manager_capability`.
    """
    if identity is not None and has_permission(identity, relation.business_id, manager_capability):
        return

    if identity is not None and relation.staff_identity_id == identity.identity_id:
        require_permission(identity, relation.business_id, capability, resource=resource)
        return

    log_security_event(
        identity_id=identity.identity_id if identity else None,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=capability.value,
        reason=f"Not the owner of staff relation {relation.id}",
        business_id=relation.business_id,
    )
    raise PermissionDenied("Permission denied: not your staff record")
