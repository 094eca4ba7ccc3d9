# Overview: Outbound invitation notices; delivery itself belongs to an external collaborator.

from __future__ import annotations

from flask import current_app


class InvitationNotifier:
    """Interface for whatever delivers invitation links (email, SMS, ...)."""

    def invitation_issued(self, invitation, invite_url: str) -> None:
        raise NotImplementedError

    def invitation_resent(self, invitation, invite_url: str) -> None:
        self.invitation_issued(invitation, invite_url)


class LoggingNotifier(InvitationNotifier):
    """Default notifier: records the notice in the app log and delivers nothing."""

    def invitation_issued(self, invitation, invite_url: str) -> None:
        current_app.logger.info(
            "Invitation %s for %s to business %s: %s",
            invitation.id, invitation.email, invitation.business_id, invite_url,
        )

    def invitation_resent(self, invitation, invite_url: str) -> None:
        current_app.logger.info(
            "Invitation %s resent to %s", invitation.id, invitation.email,
        )


def get_notifier() -> InvitationNotifier:
    return current_app.extensions["invitation_notifier"]


def dispatch(event: str, invitation, invite_url: str) -> bool:
    """
    Hand a notice to the notifier after the invitation is committed.

    A delivery failure is logged and reported as False; it never undoes the
    invitation, the owner can resend.
    """
    notifier = get_notifier()
    try:
        getattr(notifier, event)(invitation, invite_url)
    except Exception:
        current_app.logger.exception("Failed to deliver %s for invitation %s", event, invitation.id)
        return False
    return True
