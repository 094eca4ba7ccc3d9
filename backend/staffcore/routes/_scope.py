# Overview: Shared helpers for routes that act on "my" staff relation or the whole business.

from flask import g

from ..errors import StaffRelationNotFound, ValidationError
from ..services import permission_service


def own_relation_id() -> str:
    """The caller's active relation in the request's business."""
    relation = permission_service.get_active_relation(g.identity.identity_id, g.business_id)
    if relation is None:
        raise StaffRelationNotFound("You have no active staff record in this business")
    return relation.id


def can_see_business(*capabilities) -> bool:
    return any(
        permission_service.has_permission(g.identity, g.business_id, cap)
        for cap in capabilities
    )


def parse_limit(raw, default: int = 100) -> int:
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("limit must be an integer")
    return max(1, min(value, 500))
