# Overview: Flask API routes for job cards; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_identity, require_business
from ..permissions import Capability
from ..services import job_card_service, staff_service
from ._scope import can_see_business, own_relation_id, parse_limit


job_cards_bp = Blueprint("job_cards", __name__, url_prefix="/api/job-cards")


@job_cards_bp.post("")
@require_identity
@require_business
def create_job_card_route():
    data = request.get_json(silent=True) or {}
    relation_id = data.get("staff_relation_id") or own_relation_id()
    staff_service.get_relation(relation_id, g.business_id)

    card = job_card_service.create(
        relation_id,
        data.get("job_id"),
        data.get("payment_method"),
        data.get("payment_amount"),
        notes=data.get("notes"),
        work_log_id=data.get("work_log_id"),
        caller=g.identity,
    )
    return jsonify({"job_card": card.to_dict()}), 201


@job_cards_bp.get("")
@require_identity
@require_business
def list_job_cards_route():
    limit = parse_limit(request.args.get("limit"))
    work_log_id = request.args.get("work_log_id") or None

    if can_see_business(Capability.MANAGE_JOB_CARDS, Capability.VIEW_WORK_LOGS):
        relation_id = request.args.get("staff_relation_id") or None
    else:
        relation_id = own_relation_id()

    cards = job_card_service.list_job_cards(
        g.business_id,
        staff_relation_id=relation_id,
        work_log_id=work_log_id,
        limit=limit,
    )
    return jsonify({"job_cards": [c.to_dict() for c in cards], "count": len(cards)})


@job_cards_bp.patch("/<job_card_id>")
@require_identity
@require_business
def update_job_card_route(job_card_id: str):
    data = request.get_json(silent=True) or {}
    card = job_card_service.update(job_card_id, g.business_id, data, caller=g.identity)
    return jsonify({"job_card": card.to_dict()})


@job_cards_bp.post("/<job_card_id>/complete")
@require_identity
@require_business
def complete_job_card_route(job_card_id: str):
    card = job_card_service.complete(job_card_id, g.business_id, caller=g.identity)
    return jsonify({"job_card": card.to_dict()})


@job_cards_bp.delete("/<job_card_id>")
@require_identity
@require_business
def delete_job_card_route(job_card_id: str):
    job_card_service.delete(job_card_id, g.business_id, caller=g.identity)
    return jsonify({"deleted": True, "id": job_card_id})
