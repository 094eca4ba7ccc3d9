# Overview: Flask API routes for staff invitations; parses input and returns JSON responses.

"""
Invitation Routes

SECURITY:
- Issuing, listing, resending and cancelling require MANAGE_STAFF.
- verify is public: the token itself is the credential, and the response
  carries only what the signup page needs to render the offer.
- accept requires an identity (the new staff member's account).
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_identity, require_capability
from ..permissions import Capability
from ..services import invitation_service
from ..time_utils import to_utc_z


invitations_bp = Blueprint("invitations", __name__, url_prefix="/api/invitations")


def _public_view(invitation) -> dict:
    return {
        "business_id": invitation.business_id,
        "business_name": invitation.business_name,
        "email": invitation.email,
        "name": invitation.name,
        "position": invitation.position,
        "proposed_role": invitation.proposed_role,
        "status": invitation.status,
        "expires_at": to_utc_z(invitation.expires_at),
    }


@invitations_bp.post("")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def issue_invitation_route():
    data = request.get_json(silent=True) or {}

    invitation = invitation_service.issue(
        g.business_id,
        data.get("email"),
        data.get("role", "staff"),
        data.get("permissions"),
        name=data.get("name"),
        position=data.get("position"),
        invited_by=g.identity.identity_id,
    )
    payload = invitation.to_dict(include_token=True)
    payload["invite_url"] = invitation_service.build_invite_url(invitation.token)
    return jsonify({"invitation": payload}), 201


@invitations_bp.get("")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def list_invitations_route():
    status = request.args.get("status") or None
    invitations = invitation_service.list_invitations(g.business_id, status=status)
    return jsonify({
        "invitations": [i.to_dict() for i in invitations],
        "count": len(invitations),
    })


@invitations_bp.get("/<invitation_id>")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def get_invitation_route(invitation_id: str):
    invitation = invitation_service.get_invitation(invitation_id, g.business_id)
    return jsonify({"invitation": invitation.to_dict()})


@invitations_bp.delete("/<invitation_id>")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def cancel_invitation_route(invitation_id: str):
    invitation_service.cancel(invitation_id, g.business_id, caller=g.identity)
    return jsonify({"cancelled": True, "id": invitation_id})


@invitations_bp.post("/<invitation_id>/resend")
@require_identity
@require_capability(Capability.MANAGE_STAFF)
def resend_invitation_route(invitation_id: str):
    invitation = invitation_service.resend(invitation_id, g.business_id, caller=g.identity)
    return jsonify({"invitation": invitation.to_dict()})


@invitations_bp.get("/verify")
def verify_invitation_route():
    invitation = invitation_service.verify(request.args.get("token"))
    return jsonify({"invitation": _public_view(invitation)})


@invitations_bp.post("/accept")
@require_identity
def accept_invitation_route():
    data = request.get_json(silent=True) or {}
    relation = invitation_service.accept(data.get("token"), g.identity.identity_id)
    return jsonify({"staff_relation": relation.to_dict()}), 201
