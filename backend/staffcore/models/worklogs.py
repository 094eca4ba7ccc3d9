from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import new_id, now, money_str


SESSION_ACTIVE = "active"
SESSION_COMPLETED = "completed"
SESSION_STATUSES = (SESSION_ACTIVE, SESSION_COMPLETED)

PAYMENT_CASH = "cash"
PAYMENT_POS = "pos"
PAYMENT_NONE = "none"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_POS, PAYMENT_NONE)


class WorkSession(db.Model):
    """
    One clocked-in period for a staff relation.

    LIFECYCLE:
    - active: started, end_time NULL
    - completed: ended exactly once, end_time and earnings set

    Never reopened. At most one active row per staff_relation_id; the
    partial unique index is the guarantee, not an application pre-check.
    """
    __tablename__ = "work_sessions"
    __table_args__ = (
        db.Index(
            "uq_work_sessions_one_active",
            "staff_relation_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
        db.Index("ix_work_sessions_business_start", "business_id", "start_time"),
        db.CheckConstraint(
            "end_time IS NULL OR end_time > start_time",
            name="ck_work_sessions_end_after_start",
        ),
        db.CheckConstraint(
            "status IN ('active', 'completed')",
            name="ck_work_sessions_status",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    staff_relation_id = db.Column(db.String(36), db.ForeignKey("staff_relations.id"), nullable=False, index=True)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=SESSION_ACTIVE)

    # Set on completion
    earnings = db.Column(db.Numeric(12, 2), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)

    staff_relation = db.relationship("StaffRelation", backref=db.backref("work_sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_relation_id": self.staff_relation_id,
            "business_id": self.business_id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "status": self.status,
            "earnings": money_str(self.earnings),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class JobCard(db.Model):
    """
    Billable record of work done by a staff member.

    INVARIANTS:
    - payment_amount >= 0
    - payment_method 'none' implies payment_amount 0

    work_log_id, when set, points at a WorkSession of the same staff relation.
    Immutable after creation except owner-side corrections.
    """
    __tablename__ = "job_cards"
    __table_args__ = (
        db.Index("ix_job_cards_business_created", "business_id", "created_at"),
        db.Index("ix_job_cards_relation", "staff_relation_id"),
        db.CheckConstraint("payment_amount >= 0", name="ck_job_cards_amount_non_negative"),
        db.CheckConstraint(
            "payment_method IN ('cash', 'pos', 'none')",
            name="ck_job_cards_payment_method",
        ),
        db.CheckConstraint(
            "payment_method != 'none' OR payment_amount = 0",
            name="ck_job_cards_none_is_zero",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    staff_relation_id = db.Column(db.String(36), db.ForeignKey("staff_relations.id"), nullable=False)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False)

    # Reference into the external job catalog
    job_id = db.Column(db.String(36), nullable=False, index=True)
    work_log_id = db.Column(db.String(36), db.ForeignKey("work_sessions.id"), nullable=True, index=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    payment_method = db.Column(db.String(8), nullable=False, default=PAYMENT_NONE)
    payment_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now, onupdate=now)

    staff_relation = db.relationship("StaffRelation", backref=db.backref("job_cards", lazy=True))
    work_session = db.relationship("WorkSession", backref=db.backref("job_cards", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_relation_id": self.staff_relation_id,
            "business_id": self.business_id,
            "job_id": self.job_id,
            "work_log_id": self.work_log_id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "payment_method": self.payment_method,
            "payment_amount": money_str(self.payment_amount),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
