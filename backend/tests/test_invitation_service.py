"""
Invitation service tests.

Verifies:
- Issue validates input and stores a complete permission map
- verify/accept honor the expiry boundary and persist the expired flip
- accept creates exactly one StaffRelation and is all-or-nothing
- cancel and resend respect tenant ownership and terminal states
"""

from datetime import datetime, timedelta

import pytest

from staffcore.errors import (
    InvitationAlreadyAccepted,
    InvitationExpired,
    InvitationNotFound,
    PermissionDenied,
    StaffAlreadyActive,
    ValidationError,
)
from staffcore.models import Invitation, SecurityEvent, StaffRelation
from staffcore.permissions import Capability
from staffcore.services import invitation_service
from staffcore.services.notification_service import InvitationNotifier


class RecordingNotifier(InvitationNotifier):
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def invitation_issued(self, invitation, invite_url):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(("issued", invitation.id, invite_url))

    def invitation_resent(self, invitation, invite_url):
        self.sent.append(("resent", invitation.id, invite_url))


@pytest.fixture
def notifier(app):
    original = app.extensions["invitation_notifier"]
    recording = RecordingNotifier()
    app.extensions["invitation_notifier"] = recording
    yield recording
    app.extensions["invitation_notifier"] = original


# =============================================================================
# ISSUE
# =============================================================================


class TestIssue:
    """Issuing creates a pending, time-boxed invitation."""

    def test_issue_sets_pending_and_default_ttl(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "  Jane@Example.COM ", "staff", name="Jane")

        assert inv.status == "pending"
        assert inv.email == "jane@example.com"
        assert inv.business_name == "Sparkle Cleaning"
        assert inv.created_at == clock.now
        assert inv.expires_at == clock.now + timedelta(hours=48)
        assert inv.accepted_at is None

    def test_permissions_are_role_defaults_plus_overrides(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(
            business.id, "a@example.com", "staff", {"view_work_logs": True, "message_staff": False},
        )

        perms = inv.proposed_permissions
        assert set(perms) == {c.value for c in Capability}
        assert perms["clock_in"] is True
        assert perms["view_work_logs"] is True
        assert perms["message_staff"] is False
        assert perms["manage_staff"] is False

    def test_tokens_are_unique_and_unguessable(self, db_session, business, clock, notifier):
        a = invitation_service.issue(business.id, "a@example.com", "staff")
        b = invitation_service.issue(business.id, "a@example.com", "staff")

        assert a.token != b.token
        assert len(a.token) >= 40
        assert a.id not in a.token

    def test_notice_dispatched_with_invite_url(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")

        assert notifier.sent == [
            ("issued", inv.id, f"http://localhost:5173/auth/staff-invitation?token={inv.token}"),
        ]

    def test_notifier_failure_keeps_invitation(self, db_session, business, clock, notifier):
        notifier.fail = True
        inv = invitation_service.issue(business.id, "a@example.com", "staff")

        assert db_session.get(Invitation, inv.id) is not None

    @pytest.mark.parametrize(
        "email,role,perms",
        [
            ("not-an-email", "staff", None),
            (None, "staff", None),
            ("a@example.com", "manager", None),
            ("a@example.com", "staff", {"fly_to_moon": True}),
            ("a@example.com", "staff", {"clock_in": "yes"}),
            ("a@example.com", "co-admin", {"manage_billing": True}),
        ],
    )
    def test_rejects_bad_input(self, db_session, business, clock, notifier, email, role, perms):
        with pytest.raises(ValidationError):
            invitation_service.issue(business.id, email, role, perms)
        assert db_session.query(Invitation).count() == 0

    @pytest.mark.parametrize(
        "email",
        [
            "a@.example.com",
            "a@example..com",
            "a@-x-.com",
            "a\"@ex.com",
            "a@ex.c",
            "a@example",
            "   ",
        ],
    )
    def test_rejects_malformed_email(self, db_session, business, clock, notifier, email):
        with pytest.raises(ValidationError):
            invitation_service.issue(business.id, email, "staff")
        assert db_session.query(Invitation).count() == 0

    def test_email_normalized(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "  Jane.Doe@Example.COM ", "staff")
        assert inv.email == "jane.doe@example.com"

    def test_unknown_business_rejected(self, db_session, clock, notifier):
        with pytest.raises(ValidationError):
            invitation_service.issue("no-such-business", "a@example.com", "staff")


# =============================================================================
# VERIFY / EXPIRY
# =============================================================================


class TestVerifyAndExpiry:
    """Expiry is lazy but the transition is persisted."""

    def test_scenario_a_expiry_window(self, db_session, business, clock, notifier):
        clock.now = datetime(2024, 1, 1, 0, 0, 0)
        inv = invitation_service.issue(business.id, "a@example.com", "staff")

        clock.now = datetime(2024, 1, 1) + timedelta(hours=47)
        assert invitation_service.verify(inv.token).status == "pending"

        clock.now = datetime(2024, 1, 1) + timedelta(hours=49)
        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)

    def test_boundary_instant_is_expired(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        clock.now = inv.expires_at

        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)

    def test_expired_flip_is_persisted(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        clock.advance(hours=49)

        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)

        db_session.expire_all()
        assert db_session.get(Invitation, inv.id).status == "expired"

    def test_accept_after_expiry_never_succeeds(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        clock.advance(hours=49)

        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)
        with pytest.raises(InvitationExpired):
            invitation_service.accept(inv.token, "staff-9")

        assert db_session.query(StaffRelation).count() == 0

    def test_expired_stays_expired_if_clock_goes_back(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        clock.advance(hours=49)
        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)

        clock.advance(hours=-48)
        with pytest.raises(InvitationExpired):
            invitation_service.verify(inv.token)

    @pytest.mark.parametrize("token", ["", "   ", None, "nope"])
    def test_unknown_token(self, db_session, business, clock, token):
        with pytest.raises(InvitationNotFound):
            invitation_service.verify(token)


# =============================================================================
# ACCEPT
# =============================================================================


class TestAccept:
    """accept is atomic and exactly-once."""

    def test_accept_creates_relation_from_offer(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(
            business.id, "a@example.com", "staff", {"view_work_logs": True},
            name="Ana", position="Cleaner",
        )
        clock.advance(hours=1)

        relation = invitation_service.accept(inv.token, "staff-9")

        assert relation.staff_identity_id == "staff-9"
        assert relation.business_id == business.id
        assert relation.invitation_id == inv.id
        assert relation.status == "active"
        assert relation.role == "staff"
        assert relation.permissions == inv.proposed_permissions
        assert relation.name == "Ana"
        assert relation.position == "Cleaner"

        db_session.expire_all()
        stored = db_session.get(Invitation, inv.id)
        assert stored.status == "accepted"
        assert stored.accepted_at == clock.now
        assert stored.accepted_by_identity_id == "staff-9"

    def test_second_accept_reports_already_accepted(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        invitation_service.accept(inv.token, "staff-9")

        with pytest.raises(InvitationAlreadyAccepted):
            invitation_service.accept(inv.token, "staff-10")
        with pytest.raises(InvitationAlreadyAccepted):
            invitation_service.verify(inv.token)

        assert db_session.query(StaffRelation).filter_by(invitation_id=inv.id).count() == 1

    def test_already_active_identity_leaves_invitation_pending(
        self, db_session, business, clock, notifier, staff_relation,
    ):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")

        with pytest.raises(StaffAlreadyActive):
            invitation_service.accept(inv.token, staff_relation.staff_identity_id)

        db_session.expire_all()
        assert db_session.get(Invitation, inv.id).status == "pending"
        assert db_session.query(StaffRelation).filter_by(invitation_id=inv.id).count() == 0

    def test_accept_requires_identity(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        with pytest.raises(ValidationError):
            invitation_service.accept(inv.token, "")


# =============================================================================
# LIST / CANCEL / RESEND
# =============================================================================


class TestManagement:
    """Owner-side invitation management."""

    def test_list_flips_overdue_and_filters(self, db_session, business, clock, notifier):
        old = invitation_service.issue(business.id, "old@example.com", "staff")
        clock.advance(hours=30)
        fresh = invitation_service.issue(business.id, "new@example.com", "staff")
        clock.advance(hours=20)

        pending = invitation_service.list_invitations(business.id, status="pending")
        expired = invitation_service.list_invitations(business.id, status="expired")

        assert [i.id for i in pending] == [fresh.id]
        assert [i.id for i in expired] == [old.id]
        assert [i.id for i in invitation_service.list_invitations(business.id)] == [fresh.id, old.id]

    def test_list_rejects_unknown_status(self, db_session, business):
        with pytest.raises(ValidationError):
            invitation_service.list_invitations(business.id, status="lost")

    def test_cancel_pending_deletes_row(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        inv_id, token = inv.id, inv.token
        invitation_service.cancel(inv_id, business.id)

        db_session.expunge_all()
        assert db_session.get(Invitation, inv_id) is None
        with pytest.raises(InvitationNotFound):
            invitation_service.verify(token)

    def test_cancel_other_business_denied_and_logged(
        self, db_session, business, other_business, other_owner, clock, notifier,
    ):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")

        with pytest.raises(PermissionDenied):
            invitation_service.cancel(inv.id, other_business.id, caller=other_owner)

        assert db_session.get(Invitation, inv.id) is not None
        event = db_session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").one()
        assert event.business_id == other_business.id
        assert event.identity_id == other_owner.identity_id
        assert event.action == "cancel"
        assert event.success is False

    def test_cancel_accepted_denied(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        invitation_service.accept(inv.token, "staff-9")

        with pytest.raises(PermissionDenied):
            invitation_service.cancel(inv.id, business.id)

    def test_cancel_missing(self, db_session, business):
        with pytest.raises(InvitationNotFound):
            invitation_service.cancel("missing", business.id)

    def test_resend_keeps_expiry(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        expires_at = inv.expires_at
        clock.advance(hours=10)

        invitation_service.resend(inv.id, business.id)

        assert db_session.get(Invitation, inv.id).expires_at == expires_at
        assert notifier.sent[-1][0] == "resent"

    def test_resend_expired_rejected(self, db_session, business, clock, notifier):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        clock.advance(hours=72)

        with pytest.raises(InvitationExpired):
            invitation_service.resend(inv.id, business.id)

    def test_resend_other_business_denied_and_logged(
        self, db_session, business, other_business, other_owner, clock, notifier,
    ):
        inv = invitation_service.issue(business.id, "a@example.com", "staff")
        sent_before = len(notifier.sent)

        with pytest.raises(PermissionDenied):
            invitation_service.resend(inv.id, other_business.id, caller=other_owner)

        assert len(notifier.sent) == sent_before
        event = db_session.query(SecurityEvent).filter_by(event_type="CROSS_TENANT_ACCESS_DENIED").one()
        assert event.identity_id == other_owner.identity_id
        assert event.business_id == other_business.id
        assert event.action == "resend"
