# Overview: Flask API routes for work sessions; clock-in/clock-out and work history.

"""
Work Session Routes

WHY: Staff clock in and out from the mobile app; owners review hours.

SECURITY:
- start/end are checked per relation by the service: the staff member
  needs CLOCK_IN on their own relation, a manager needs MANAGE_STAFF.
- Listing the whole business needs VIEW_WORK_LOGS or MANAGE_STAFF;
  everyone else only sees their own sessions.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_identity, require_business
from ..errors import PermissionDenied
from ..models.worklogs import SESSION_STATUSES
from ..permissions import Capability
from ..services import staff_service, work_session_service
from ..validation import require_choice
from ._scope import can_see_business, own_relation_id, parse_limit


work_sessions_bp = Blueprint("work_sessions", __name__, url_prefix="/api/work-sessions")


@work_sessions_bp.post("/start")
@require_identity
@require_business
def start_session_route():
    data = request.get_json(silent=True) or {}
    relation_id = data.get("staff_relation_id") or own_relation_id()
    staff_service.get_relation(relation_id, g.business_id)

    session = work_session_service.start(relation_id, caller=g.identity, notes=data.get("notes"))
    return jsonify({"work_session": session.to_dict()}), 201


@work_sessions_bp.post("/<session_id>/end")
@require_identity
@require_business
def end_session_route(session_id: str):
    data = request.get_json(silent=True) or {}
    session = work_session_service.get_session(session_id, g.business_id)

    ended = work_session_service.end(
        session.id,
        earnings=data.get("earnings"),
        notes=data.get("notes"),
        caller=g.identity,
    )
    return jsonify({"work_session": ended.to_dict()})


@work_sessions_bp.get("/active")
@require_identity
@require_business
def active_session_route():
    relation_id = request.args.get("staff_relation_id") or own_relation_id()
    relation = staff_service.get_relation(relation_id, g.business_id)

    if relation.staff_identity_id != g.identity.identity_id and not can_see_business(
        Capability.VIEW_WORK_LOGS, Capability.MANAGE_STAFF,
    ):
        raise PermissionDenied("Permission denied: view_work_logs")

    session = work_session_service.get_active(relation.id)
    return jsonify({"work_session": session.to_dict() if session else None})


@work_sessions_bp.get("")
@require_identity
@require_business
def list_sessions_route():
    status = request.args.get("status") or None
    if status is not None:
        require_choice(status, SESSION_STATUSES, "status")
    limit = parse_limit(request.args.get("limit"))

    if can_see_business(Capability.VIEW_WORK_LOGS, Capability.MANAGE_STAFF):
        relation_id = request.args.get("staff_relation_id") or None
    else:
        relation_id = own_relation_id()

    sessions = work_session_service.list_sessions(
        business_id=g.business_id,
        staff_relation_id=relation_id,
        status=status,
        limit=limit,
    )
    return jsonify({"work_sessions": [s.to_dict() for s in sessions], "count": len(sessions)})
