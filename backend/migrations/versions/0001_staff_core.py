"""Staff core: businesses, jobs, invitations, staff relations, work sessions, job cards

SCHEMA:
1. businesses / jobs: tenant root and the read-only job catalog
2. staff_invitations: single-use tokens, unique across all time
3. staff_relations: one ACTIVE relation per (identity, business) via a
   partial unique index
4. work_sessions: one ACTIVE session per staff relation via a partial
   unique index
5. job_cards: payment invariants as CHECK constraints
6. security_events: denial audit trail

Revision ID: sc0001_staff_core
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sc0001_staff_core'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # STEP 1: Tenancy and job catalog
    # ==========================================================================
    op.create_table('businesses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('owner_identity_id', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_businesses_owner', 'businesses', ['owner_identity_id'])
    op.create_index('ix_businesses_is_active', 'businesses', ['is_active'])

    op.create_table('jobs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_duration', sa.Integer(), nullable=True),
        sa.Column('default_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_jobs_business', 'jobs', ['business_id'])

    # ==========================================================================
    # STEP 2: Invitations
    # ==========================================================================
    op.create_table('staff_invitations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('position', sa.String(length=255), nullable=True),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('proposed_role', sa.String(length=16), nullable=False),
        sa.Column('proposed_permissions', sa.JSON(), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('invited_by_identity_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_by_identity_id', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token', name='uq_staff_invitations_token'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'expired')",
            name='ck_staff_invitations_status',
        ),
    )
    op.create_index('ix_staff_invitations_business_status', 'staff_invitations', ['business_id', 'status'])

    # ==========================================================================
    # STEP 3: Staff relations
    # ==========================================================================
    op.create_table('staff_relations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('staff_identity_id', sa.String(length=64), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('invitation_id', sa.String(length=36), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('position', sa.String(length=255), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invitation_id', name='uq_staff_relations_invitation'),
        sa.CheckConstraint("role IN ('staff', 'co-admin')", name='ck_staff_relations_role'),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'inactive')",
            name='ck_staff_relations_status',
        ),
    )
    with op.batch_alter_table('staff_relations', schema=None) as batch_op:
        batch_op.create_index('ix_staff_relations_staff_identity_id', ['staff_identity_id'])
        batch_op.create_index('ix_staff_relations_business_status', ['business_id', 'status'])
        batch_op.create_index(
            'uq_staff_relations_one_active',
            ['staff_identity_id', 'business_id'],
            unique=True,
            sqlite_where=sa.text("status = 'active'"),
            postgresql_where=sa.text("status = 'active'"),
        )

    # ==========================================================================
    # STEP 4: Work sessions
    # ==========================================================================
    op.create_table('work_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('staff_relation_id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('earnings', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['staff_relation_id'], ['staff_relations.id']),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'end_time IS NULL OR end_time > start_time',
            name='ck_work_sessions_end_after_start',
        ),
        sa.CheckConstraint("status IN ('active', 'completed')", name='ck_work_sessions_status'),
    )
    with op.batch_alter_table('work_sessions', schema=None) as batch_op:
        batch_op.create_index('ix_work_sessions_staff_relation_id', ['staff_relation_id'])
        batch_op.create_index('ix_work_sessions_business_start', ['business_id', 'start_time'])
        batch_op.create_index(
            'uq_work_sessions_one_active',
            ['staff_relation_id'],
            unique=True,
            sqlite_where=sa.text("status = 'active'"),
            postgresql_where=sa.text("status = 'active'"),
        )

    # ==========================================================================
    # STEP 5: Job cards
    # ==========================================================================
    op.create_table('job_cards',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('staff_relation_id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('work_log_id', sa.String(length=36), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_method', sa.String(length=8), nullable=False, server_default='none'),
        sa.Column('payment_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['staff_relation_id'], ['staff_relations.id']),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.ForeignKeyConstraint(['work_log_id'], ['work_sessions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('payment_amount >= 0', name='ck_job_cards_amount_non_negative'),
        sa.CheckConstraint(
            "payment_method IN ('cash', 'pos', 'none')",
            name='ck_job_cards_payment_method',
        ),
        sa.CheckConstraint(
            "payment_method != 'none' OR payment_amount = 0",
            name='ck_job_cards_none_is_zero',
        ),
    )
    with op.batch_alter_table('job_cards', schema=None) as batch_op:
        batch_op.create_index('ix_job_cards_business_created', ['business_id', 'created_at'])
        batch_op.create_index('ix_job_cards_relation', ['staff_relation_id'])
        batch_op.create_index('ix_job_cards_job_id', ['job_id'])
        batch_op.create_index('ix_job_cards_work_log_id', ['work_log_id'])

    # ==========================================================================
    # STEP 6: Security audit trail
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=36), nullable=True),
        sa.Column('identity_id', sa.String(length=64), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index('ix_security_events_business_id', ['business_id'])
        batch_op.create_index('ix_security_events_identity_id', ['identity_id'])
        batch_op.create_index('ix_security_events_event_type', ['event_type'])
        batch_op.create_index('ix_security_events_success', ['success'])
        batch_op.create_index('ix_security_events_occurred_at', ['occurred_at'])
        batch_op.create_index('ix_security_events_identity_type', ['identity_id', 'event_type'])
        batch_op.create_index('ix_security_events_business_occurred', ['business_id', 'occurred_at'])


def downgrade():
    op.drop_table('security_events')
    op.drop_table('job_cards')
    op.drop_table('work_sessions')
    op.drop_table('staff_relations')
    op.drop_table('staff_invitations')
    op.drop_table('jobs')
    op.drop_table('businesses')
