"""
HTTP API tests.

Verifies:
- Protected endpoints return 401 without an identity
- Typed errors render as {"error", "code"} with the right status
- Owner, co-admin and staff see the surfaces their capabilities allow
- The invitation -> accept -> clock in -> job card -> clock out flow
"""

import pytest

from staffcore.models import SecurityEvent, StaffRelation
from staffcore.services import work_session_service


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without an identity."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/invitations"),
            ("POST", "/api/invitations"),
            ("POST", "/api/invitations/accept"),
            ("GET", "/api/staff"),
            ("GET", "/api/staff/permissions/me"),
            ("POST", "/api/work-sessions/start"),
            ("GET", "/api/work-sessions"),
            ("GET", "/api/job-cards"),
            ("POST", "/api/job-cards"),
        ],
    )
    def test_requires_identity(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["code"] == "unauthenticated"


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"

    def test_cors_allows_configured_origin(self, app, client, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "CORS_ORIGINS", ["https://admin.example.com"])

        allowed = client.get("/health", headers={"Origin": "https://admin.example.com"})
        other = client.get("/health", headers={"Origin": "http://localhost:5173"})

        assert allowed.headers["Access-Control-Allow-Origin"] == "https://admin.example.com"
        assert "Access-Control-Allow-Origin" not in other.headers


# =============================================================================
# INVITATIONS
# =============================================================================


class TestInvitationRoutes:

    def test_issue_verify_accept(self, client, db_session, clock, owner_headers, business):
        resp = client.post(
            "/api/invitations",
            json={"email": "new@example.com", "role": "staff", "name": "Nia", "permissions": {"view_work_logs": True}},
            headers=owner_headers,
        )
        assert resp.status_code == 201
        invitation = resp.get_json()["invitation"]
        token = invitation["token"]
        assert invitation["invite_url"].endswith(f"?token={token}")
        assert invitation["status"] == "pending"

        resp = client.get(f"/api/invitations/verify?token={token}")
        assert resp.status_code == 200
        offer = resp.get_json()["invitation"]
        assert offer["business_name"] == "Sparkle Cleaning"
        assert "token" not in offer

        resp = client.post("/api/invitations/accept", json={"token": token}, headers={"X-Identity-Id": "new-1"})
        assert resp.status_code == 201
        relation = resp.get_json()["staff_relation"]
        assert relation["staff_identity_id"] == "new-1"
        assert relation["permissions"]["view_work_logs"] is True

        resp = client.post("/api/invitations/accept", json={"token": token}, headers={"X-Identity-Id": "new-2"})
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "invitation_already_accepted"

    def test_expired_token_is_410(self, client, db_session, clock, owner_headers, business):
        token = client.post(
            "/api/invitations", json={"email": "late@example.com"}, headers=owner_headers,
        ).get_json()["invitation"]["token"]
        clock.advance(hours=48)

        resp = client.get(f"/api/invitations/verify?token={token}")
        assert resp.status_code == 410
        assert resp.get_json() == {
            "error": "This invitation has expired, request a new one.",
            "code": "invitation_expired",
        }

    def test_unknown_token_is_404(self, client, db_session):
        resp = client.get("/api/invitations/verify?token=nope")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "invitation_not_found"

    def test_validation_error_is_400(self, client, db_session, owner_headers, business):
        resp = client.post("/api/invitations", json={"email": "bad"}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "validation_error"

    def test_staff_cannot_invite(self, client, db_session, staff_headers, business):
        resp = client.post("/api/invitations", json={"email": "x@example.com"}, headers=staff_headers)
        assert resp.status_code == 403
        body = resp.get_json()
        assert body["code"] == "permission_denied"
        assert body["required_permission"] == "manage_staff"
        assert db_session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").count() == 1

    def test_coadmin_lists_and_cancels(self, client, db_session, clock, owner_headers, coadmin_headers, business):
        inv_id = client.post(
            "/api/invitations", json={"email": "x@example.com"}, headers=owner_headers,
        ).get_json()["invitation"]["id"]

        listing = client.get("/api/invitations", headers=coadmin_headers).get_json()
        assert listing["count"] == 1
        assert "token" not in listing["invitations"][0]

        resp = client.delete(f"/api/invitations/{inv_id}", headers=coadmin_headers)
        assert resp.status_code == 200
        assert client.get("/api/invitations", headers=coadmin_headers).get_json()["count"] == 0

    def test_resend(self, client, db_session, clock, owner_headers, business):
        inv_id = client.post(
            "/api/invitations", json={"email": "x@example.com"}, headers=owner_headers,
        ).get_json()["invitation"]["id"]

        resp = client.post(f"/api/invitations/{inv_id}/resend", headers=owner_headers)
        assert resp.status_code == 200

    def test_other_owner_cannot_see_invitation(
        self, client, db_session, clock, owner_headers, business, other_business,
    ):
        inv_id = client.post(
            "/api/invitations", json={"email": "x@example.com"}, headers=owner_headers,
        ).get_json()["invitation"]["id"]

        resp = client.get(f"/api/invitations/{inv_id}", headers={"X-Identity-Id": "owner-2"})
        assert resp.status_code == 404


# =============================================================================
# STAFF
# =============================================================================


class TestStaffRoutes:

    def test_permissions_me(self, client, db_session, staff_headers, owner_headers):
        mine = client.get("/api/staff/permissions/me", headers=staff_headers).get_json()
        assert mine["is_owner"] is False
        assert mine["permissions"]["clock_in"] is True
        assert mine["permissions"]["manage_staff"] is False

        theirs = client.get("/api/staff/permissions/me", headers=owner_headers).get_json()
        assert theirs["is_owner"] is True
        assert all(theirs["permissions"].values())

    def test_identity_without_business_is_403(self, client, db_session):
        resp = client.get("/api/staff/permissions/me", headers={"X-Identity-Id": "drifter"})
        assert resp.status_code == 403

    def test_owner_edits_permissions_and_status(self, client, db_session, owner_headers, staff_relation):
        resp = client.patch(
            f"/api/staff/{staff_relation.id}/permissions",
            json={"permissions": {"view_work_logs": True}},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["staff_relation"]["permissions"]["view_work_logs"] is True

        resp = client.patch(
            f"/api/staff/{staff_relation.id}/status", json={"status": "inactive"}, headers=owner_headers,
        )
        assert resp.get_json()["staff_relation"]["status"] == "inactive"

    def test_unknown_capability_rejected(self, client, db_session, owner_headers, staff_relation):
        resp = client.patch(
            f"/api/staff/{staff_relation.id}/permissions",
            json={"permissions": {"clock_out_forever": True}},
            headers=owner_headers,
        )
        assert resp.status_code == 400

    def test_other_business_relation_is_404(self, client, db_session, staff_relation, other_business):
        resp = client.patch(
            f"/api/staff/{staff_relation.id}/status",
            json={"status": "inactive"},
            headers={"X-Identity-Id": "owner-2"},
        )
        assert resp.status_code == 404
        db_session.expire_all()
        assert db_session.get(StaffRelation, staff_relation.id).status == "active"

    def test_list_staff(self, client, db_session, owner_headers, staff_relation, coadmin_relation):
        body = client.get("/api/staff", headers=owner_headers).get_json()
        assert body["count"] == 2

    def test_capabilities_catalog(self, client, db_session, staff_headers):
        caps = client.get("/api/staff/capabilities", headers=staff_headers).get_json()["capabilities"]
        assert {"clock_in", "manage_billing"} <= {c["key"] for c in caps}

        ownership = client.get("/api/staff/capabilities?category=ownership", headers=staff_headers).get_json()
        assert {c["key"] for c in ownership["capabilities"]} == {"manage_billing", "transfer_ownership"}


# =============================================================================
# WORK SESSIONS AND JOB CARDS
# =============================================================================


class TestWorkFlow:

    def test_clock_in_card_clock_out(self, client, db_session, clock, staff_headers, job):
        resp = client.post("/api/work-sessions/start", json={}, headers=staff_headers)
        assert resp.status_code == 201
        session = resp.get_json()["work_session"]

        resp = client.post("/api/work-sessions/start", json={}, headers=staff_headers)
        assert resp.status_code == 409
        assert resp.get_json()["existing_session_id"] == session["id"]

        active = client.get("/api/work-sessions/active", headers=staff_headers).get_json()
        assert active["work_session"]["id"] == session["id"]

        resp = client.post(
            "/api/job-cards",
            json={"job_id": job.id, "payment_method": "none", "payment_amount": 50, "work_log_id": session["id"]},
            headers=staff_headers,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/api/job-cards",
            json={"job_id": job.id, "payment_method": "cash", "payment_amount": "60.00", "work_log_id": session["id"]},
            headers=staff_headers,
        )
        assert resp.status_code == 201
        card = resp.get_json()["job_card"]
        assert card["payment_amount"] == "60.00"

        clock.advance(hours=8)
        resp = client.post(f"/api/job-cards/{card['id']}/complete", headers=staff_headers)
        assert resp.status_code == 200

        resp = client.post(f"/api/work-sessions/{session['id']}/end", json={"earnings": "96"}, headers=staff_headers)
        assert resp.status_code == 200
        ended = resp.get_json()["work_session"]
        assert ended["status"] == "completed"
        assert ended["earnings"] == "96.00"

        resp = client.post(f"/api/work-sessions/{session['id']}/end", json={}, headers=staff_headers)
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "session_already_completed"

        assert client.get("/api/work-sessions/active", headers=staff_headers).get_json()["work_session"] is None

    def test_staff_history_is_own_only(
        self, client, db_session, clock, business, staff_headers, owner_headers, make_relation, owner,
    ):
        colleague = make_relation(business, "staff-2")
        work_session_service.start(colleague.id, caller=owner)
        client.post("/api/work-sessions/start", json={}, headers=staff_headers)

        assert client.get("/api/work-sessions", headers=staff_headers).get_json()["count"] == 1
        assert client.get("/api/work-sessions", headers=owner_headers).get_json()["count"] == 2

    def test_staff_cannot_peek_at_colleague_session(
        self, client, db_session, business, staff_headers, make_relation,
    ):
        colleague = make_relation(business, "staff-2")
        resp = client.get(f"/api/work-sessions/active?staff_relation_id={colleague.id}", headers=staff_headers)
        assert resp.status_code == 403

    def test_owner_without_relation_must_name_one(self, client, db_session, owner_headers):
        resp = client.post("/api/work-sessions/start", json={}, headers=owner_headers)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "staff_relation_not_found"

    def test_owner_corrects_and_deletes_card(self, client, db_session, clock, staff_headers, owner_headers, job):
        card_id = client.post(
            "/api/job-cards",
            json={"job_id": job.id, "payment_method": "pos", "payment_amount": 20},
            headers=staff_headers,
        ).get_json()["job_card"]["id"]

        resp = client.patch(f"/api/job-cards/{card_id}", json={"payment_amount": "25"}, headers=staff_headers)
        assert resp.status_code == 403

        resp = client.patch(f"/api/job-cards/{card_id}", json={"payment_amount": "25"}, headers=owner_headers)
        assert resp.get_json()["job_card"]["payment_amount"] == "25.00"

        assert client.delete(f"/api/job-cards/{card_id}", headers=owner_headers).status_code == 200
        assert client.get("/api/job-cards", headers=owner_headers).get_json()["count"] == 0
