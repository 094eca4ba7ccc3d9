# Overview: Typed error taxonomy raised by the service layer and rendered by the app error handler.

"""
Service Errors

Every failure the core can report is one of these classes. Routes never
build error payloads by hand; the handler registered in create_app() renders
any StaffCoreError as {"error": message, "code": code, **extra} with the
class's HTTP status.

Races (InvitationAlreadyAccepted, DuplicateActiveSession,
SessionAlreadyCompleted) are reported to the caller, never retried.
"""

from __future__ import annotations


class StaffCoreError(Exception):
    """Base class for all typed core errors."""

    status_code = 400
    code = "error"

    def __init__(self, message: str | None = None, **extra):
        message = message or (self.__class__.__doc__ or self.code).strip()
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


class ValidationError(StaffCoreError, ValueError):
    """Malformed input."""
    status_code = 400
    code = "validation_error"


class StaffAlreadyActive(ValidationError):
    """Identity already has an active relation with this business."""
    code = "staff_already_active"


class PermissionDenied(StaffCoreError):
    """Permission denied."""
    status_code = 403
    code = "permission_denied"


class InvitationNotFound(StaffCoreError):
    """Invitation not found."""
    status_code = 404
    code = "invitation_not_found"


class InvitationExpired(StaffCoreError):
    """This invitation has expired, request a new one."""
    status_code = 410
    code = "invitation_expired"


class InvitationAlreadyAccepted(StaffCoreError):
    """This invitation has already been accepted."""
    status_code = 409
    code = "invitation_already_accepted"


class StaffRelationNotFound(StaffCoreError):
    """Staff member not found."""
    status_code = 404
    code = "staff_relation_not_found"


class DuplicateActiveSession(StaffCoreError):
    """A work session is already active for this staff member."""
    status_code = 409
    code = "duplicate_active_session"

    def __init__(self, existing_session_id: str | None, message: str | None = None):
        super().__init__(message, existing_session_id=existing_session_id)
        self.existing_session_id = existing_session_id


class SessionNotFound(StaffCoreError):
    """Work session not found."""
    status_code = 404
    code = "session_not_found"


class SessionAlreadyCompleted(StaffCoreError):
    """Work session has already been completed."""
    status_code = 409
    code = "session_already_completed"


class JobCardNotFound(StaffCoreError):
    """Job card not found."""
    status_code = 404
    code = "job_card_not_found"


class JobCardAlreadyCompleted(StaffCoreError):
    """Job card has already been completed."""
    status_code = 409
    code = "job_card_already_completed"
