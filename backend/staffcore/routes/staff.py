# Overview: Flask API routes for staff relations; permission edits and status toggles.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_identity, require_business, require_capability
from ..permissions import (
    Capability,
    CAPABILITY_DEFINITIONS,
    get_capabilities_by_category,
    get_capability_definition,
)
from ..services import permission_service, staff_service


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def list_staff_route():
    status = request.args.get("status") or None
    relations = staff_service.list_relations(g.business_id, status=status)
    return jsonify({"staff": [r.to_dict() for r in relations], "count": len(relations)})


@staff_bp.get("/permissions/me")
@require_identity
@require_business
def my_permissions_route():
    return jsonify({
        "business_id": g.business_id,
        "is_owner": permission_service.is_business_owner(g.identity, g.business_id),
        "permissions": permission_service.get_effective_permissions(g.identity, g.business_id),
    })


@staff_bp.get("/capabilities")
@require_identity
def list_capabilities_route():
    category = request.args.get("category")
    definitions = get_capabilities_by_category(category.upper()) if category else CAPABILITY_DEFINITIONS
    return jsonify({
        "capabilities": [get_capability_definition(cap.value) for cap, *_ in definitions]
    })


@staff_bp.patch("/<relation_id>/permissions")
@require_identity
@require_business
def update_permissions_route(relation_id: str):
    data = request.get_json(silent=True) or {}
    staff_service.get_relation(relation_id, g.business_id)
    relation = staff_service.update_permissions(relation_id, data.get("permissions"), caller=g.identity)
    return jsonify({"staff_relation": relation.to_dict()})


@staff_bp.patch("/<relation_id>/status")
@require_identity
@require_business
def set_status_route(relation_id: str):
    data = request.get_json(silent=True) or {}
    staff_service.get_relation(relation_id, g.business_id)
    relation = staff_service.set_status(relation_id, data.get("status"), caller=g.identity)
    return jsonify({"staff_relation": relation.to_dict()})


@staff_bp.patch("/<relation_id>/hourly-rate")
@require_identity
@require_business
def set_hourly_rate_route(relation_id: str):
    data = request.get_json(silent=True) or {}
    staff_service.get_relation(relation_id, g.business_id)
    relation = staff_service.set_hourly_rate(relation_id, data.get("hourly_rate"), caller=g.identity)
    return jsonify({"staff_relation": relation.to_dict()})
