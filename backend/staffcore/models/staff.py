from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import new_id, now, money_str


INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_EXPIRED = "expired"
INVITATION_STATUSES = (INVITATION_PENDING, INVITATION_ACCEPTED, INVITATION_EXPIRED)

RELATION_PENDING = "pending"
RELATION_ACTIVE = "active"
RELATION_INACTIVE = "inactive"
RELATION_STATUSES = (RELATION_PENDING, RELATION_ACTIVE, RELATION_INACTIVE)


class Invitation(db.Model):
    """
    Time-boxed, single-use offer for a staff identity to join a business.

    LIFECYCLE:
    - pending: issued, token usable
    - accepted: terminal, exactly one StaffRelation created
    - expired: terminal, flipped lazily on first access after expires_at

    No transition ever returns to pending. Deleted only by cancel while pending.

    SECURITY: token is unique across every invitation ever issued, so an
    old link can never be replayed against a newer invitation.
    """
    __tablename__ = "staff_invitations"
    __table_args__ = (
        db.UniqueConstraint("token", name="uq_staff_invitations_token"),
        db.Index("ix_staff_invitations_business_status", "business_id", "status"),
        db.CheckConstraint(
            "status IN ('pending', 'accepted', 'expired')",
            name="ck_staff_invitations_status",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False)

    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=True)
    position = db.Column(db.String(255), nullable=True)

    token = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=INVITATION_PENDING)

    proposed_role = db.Column(db.String(16), nullable=False)
    proposed_permissions = db.Column(db.JSON, nullable=False, default=dict)

    # Denormalized for display on the signup page
    business_name = db.Column(db.String(255), nullable=True)

    invited_by_identity_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    accepted_by_identity_id = db.Column(db.String(64), nullable=True)

    business = db.relationship("Business", backref=db.backref("invitations", lazy=True))

    def __repr__(self) -> str:
        return f"<Invitation id={self.id} email={self.email!r} status={self.status}>"

    def to_dict(self, include_token: bool = False) -> dict:
        data = {
            "id": self.id,
            "business_id": self.business_id,
            "business_name": self.business_name,
            "email": self.email,
            "name": self.name,
            "position": self.position,
            "status": self.status,
            "proposed_role": self.proposed_role,
            "proposed_permissions": dict(self.proposed_permissions or {}),
            "invited_by_identity_id": self.invited_by_identity_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "accepted_at": to_utc_z(self.accepted_at),
            "accepted_by_identity_id": self.accepted_by_identity_id,
        }
        if include_token:
            data["token"] = self.token
        return data


class StaffRelation(db.Model):
    """
    Durable membership linking a staff identity to a business.

    INVARIANTS:
    - At most one active relation per (staff_identity_id, business_id),
      enforced by a partial unique index.
    - Created exactly once per accepted invitation (invitation_id is unique).

    permissions is a full capability -> bool map, validated against the
    closed capability set before it is stored.
    """
    __tablename__ = "staff_relations"
    __table_args__ = (
        db.UniqueConstraint("invitation_id", name="uq_staff_relations_invitation"),
        db.Index(
            "uq_staff_relations_one_active",
            "staff_identity_id",
            "business_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
        db.Index("ix_staff_relations_business_status", "business_id", "status"),
        db.CheckConstraint(
            "role IN ('staff', 'co-admin')",
            name="ck_staff_relations_role",
        ),
        db.CheckConstraint(
            "status IN ('pending', 'active', 'inactive')",
            name="ck_staff_relations_status",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    staff_identity_id = db.Column(db.String(64), nullable=False, index=True)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False)
    invitation_id = db.Column(db.String(36), nullable=True)

    role = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=RELATION_ACTIVE)
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    position = db.Column(db.String(255), nullable=True)

    # Used for default earnings when a work session ends without an amount
    hourly_rate = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now, onupdate=now)

    business = db.relationship("Business", backref=db.backref("staff_relations", lazy=True))

    def __repr__(self) -> str:
        return f"<StaffRelation id={self.id} identity={self.staff_identity_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_identity_id": self.staff_identity_id,
            "business_id": self.business_id,
            "invitation_id": self.invitation_id,
            "role": self.role,
            "status": self.status,
            "permissions": dict(self.permissions or {}),
            "name": self.name,
            "email": self.email,
            "position": self.position,
            "hourly_rate": money_str(self.hourly_rate),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
