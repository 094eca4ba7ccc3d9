from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import new_id, now


class SecurityEvent(db.Model):
    """
    Security event audit log with tenant context.

    WHY: Track permission denials and cross-tenant probes.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_identity_type", "identity_id", "event_type"),
        db.Index("ix_security_events_business_occurred", "business_id", "occurred_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    # Nullable for requests without a resolved tenant
    business_id = db.Column(db.String(36), nullable=True, index=True)
    identity_id = db.Column(db.String(64), nullable=True, index=True)

    # PERMISSION_DENIED, CROSS_TENANT_ACCESS_DENIED, ...
    event_type = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(128), nullable=True)
    action = db.Column(db.String(64), nullable=True)

    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "identity_id": self.identity_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
