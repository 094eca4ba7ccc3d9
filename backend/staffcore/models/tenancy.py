from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import new_id, now, money_str


class Business(db.Model):
    """
    Multi-tenant root: every tenant is a Business.

    WHY: All invitations, staff relations, work sessions and job cards
    belong to exactly one business. The owner identity is the only account
    that passes every permission check for its business.
    """
    __tablename__ = "businesses"
    __table_args__ = (
        db.Index("ix_businesses_owner", "owner_identity_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    owner_identity_id = db.Column(db.String(64), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)

    def __repr__(self) -> str:
        return f"<Business id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "owner_identity_id": self.owner_identity_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Job(db.Model):
    """
    Job catalog entry (what a staff member can do for a customer).

    READ-ONLY to this service: rows are maintained by the catalog owner.
    Job cards reference them through the JobCatalog interface.
    """
    __tablename__ = "jobs"
    __table_args__ = (
        db.Index("ix_jobs_business", "business_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Minutes
    default_duration = db.Column(db.Integer, nullable=True)
    default_price = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)

    business = db.relationship("Business", backref=db.backref("jobs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "name": self.name,
            "description": self.description,
            "default_duration": self.default_duration,
            "default_price": money_str(self.default_price),
            "created_at": to_utc_z(self.created_at),
        }
