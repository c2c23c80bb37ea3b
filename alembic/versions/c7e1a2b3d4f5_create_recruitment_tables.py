"""Create recruitment tables

Revision ID: c7e1a2b3d4f5
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = 'c7e1a2b3d4f5'
down_revision = None
branch_labels = None
depends_on = None


# Enum types store member names, matching sqlalchemy.Enum on the models
user_role = postgresql.ENUM(
    'SUPER_ADMIN', 'RECRUITER', 'BRANCH_MANAGER', 'REGIONAL_MANAGER', 'VIEWER',
    name='user_role', create_type=False,
)
candidate_status = postgresql.ENUM(
    'NEW', 'SCREENING', 'INTERVIEW_SCHEDULED', 'INTERVIEW_COMPLETE', 'TRIAL_SCHEDULED',
    'TRIAL_COMPLETE', 'APPROVED', 'REJECTED', 'WITHDRAWN', 'ARCHIVED',
    name='candidate_status', create_type=False,
)
interview_type = postgresql.ENUM('INTERVIEW', 'TRIAL', name='interview_type', create_type=False)
interview_status = postgresql.ENUM(
    'SCHEDULED', 'COMPLETED', 'CANCELLED', 'NO_SHOW', 'LAPSED',
    name='interview_status', create_type=False,
)
booking_source = postgresql.ENUM('RECRUITER', 'SELF_SERVICE', name='booking_source', create_type=False)
booking_link_status = postgresql.ENUM(
    'ACTIVE', 'USED', 'EXPIRED', 'REVOKED', 'CANCELLED',
    name='booking_link_status', create_type=False,
)
activity_action = postgresql.ENUM(
    'CREATED', 'UPDATED', 'DELETED', 'STATUS_CHANGED', 'CV_UPLOADED', 'CV_PARSED',
    'INTERVIEW_SCHEDULED', 'FEEDBACK_SUBMITTED', 'MESSAGE_SENT',
    'BOOKING_LINK_CREATED', 'BOOKING_LINK_USED',
    name='activity_action', create_type=False,
)

ENUMS = (user_role, candidate_status, interview_type, interview_status, booking_source, booking_link_status, activity_action)


def upgrade():
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'candidates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('phone_normalized', sa.String(), nullable=True),
        sa.Column('job_title', sa.String(), nullable=True),
        sa.Column('branch_name', sa.String(), nullable=True),
        sa.Column('status', candidate_status, nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by', sa.String(36), nullable=True),
        sa.Column('archived_reason', sa.Text(), nullable=True),
        sa.Column('previous_status', candidate_status, nullable=True),
        sa.Column('restored_at', sa.DateTime(), nullable=True),
        sa.Column('restored_by', sa.String(36), nullable=True),
        sa.Column('application_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_returning_candidate', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('last_application_at', sa.DateTime(), nullable=True),
        sa.Column('reactivated_at', sa.DateTime(), nullable=True),
        sa.Column('reactivated_by', sa.String(36), nullable=True),
        sa.Column('cv_url', sa.String(), nullable=True),
        sa.Column('cv_file_name', sa.String(), nullable=True),
        sa.Column('cv_uploaded_at', sa.DateTime(), nullable=True),
        sa.Column('withdrawal_reason', sa.Text(), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_candidates_id'), 'candidates', ['id'])
    op.create_index(op.f('ix_candidates_email'), 'candidates', ['email'])
    op.create_index(op.f('ix_candidates_phone_normalized'), 'candidates', ['phone_normalized'])
    op.create_index(op.f('ix_candidates_status'), 'candidates', ['status'])
    op.create_index(op.f('ix_candidates_archived'), 'candidates', ['archived'])

    # candidate_id is a reference without a foreign key; orphans are swept
    op.create_table(
        'interviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('candidate_id', sa.String(36), nullable=False),
        sa.Column('candidate_name', sa.String(), nullable=True),
        sa.Column('job_title', sa.String(), nullable=True),
        sa.Column('branch_name', sa.String(), nullable=True),
        sa.Column('type', interview_type, nullable=False),
        sa.Column('status', interview_status, nullable=False),
        sa.Column('scheduled_date', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('rescheduled_from', sa.DateTime(), nullable=True),
        sa.Column('rescheduled_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.String(36), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('lapsed_at', sa.DateTime(), nullable=True),
        sa.Column('no_show_at', sa.DateTime(), nullable=True),
        sa.Column('feedback', sa.JSON(), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        sa.Column('booked_via', booking_source, nullable=False),
        sa.Column('booking_link_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_interviews_id'), 'interviews', ['id'])
    op.create_index(op.f('ix_interviews_candidate_id'), 'interviews', ['candidate_id'])
    op.create_index(op.f('ix_interviews_status'), 'interviews', ['status'])
    op.create_index(op.f('ix_interviews_scheduled_date'), 'interviews', ['scheduled_date'])

    op.create_table(
        'booking_links',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('candidate_id', sa.String(36), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('type', interview_type, nullable=False),
        sa.Column('status', booking_link_status, nullable=False),
        sa.Column('candidate_name', sa.String(), nullable=True),
        sa.Column('job_title', sa.String(), nullable=True),
        sa.Column('branch_name', sa.String(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('use_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('interview_id', sa.String(36), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_booking_links_id'), 'booking_links', ['id'])
    op.create_index(op.f('ix_booking_links_candidate_id'), 'booking_links', ['candidate_id'])
    op.create_index(op.f('ix_booking_links_token_hash'), 'booking_links', ['token_hash'], unique=True)
    op.create_index(op.f('ix_booking_links_status'), 'booking_links', ['status'])

    op.create_table(
        'activity_log',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('entity_type', sa.String(32), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('action', activity_action, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('user_name', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_activity_log_entity_type'), 'activity_log', ['entity_type'])
    op.create_index(op.f('ix_activity_log_entity_id'), 'activity_log', ['entity_id'])
    op.create_index(op.f('ix_activity_log_created_at'), 'activity_log', ['created_at'])


def downgrade():
    op.drop_table('activity_log')
    op.drop_table('booking_links')
    op.drop_table('interviews')
    op.drop_table('candidates')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
