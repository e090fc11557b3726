"""Initial schema for the ServiceLane database.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_fk(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create all tables."""

    # 1. users
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('zip_code', sa.String(20), nullable=True),
        sa.Column('roles', postgresql.JSONB(), server_default=sa.text("'[\"owner\"]'::jsonb"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('provider_status', sa.String(20), server_default='none', nullable=False),
        sa.Column('provider_status_reason', sa.String(500), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('review_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    # 2. provider_profiles
    op.create_table(
        'provider_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk('user_id'),
        sa.Column('business_name', sa.String(200), nullable=True),
        sa.Column('service_types', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('years_in_business', sa.Integer(), nullable=True),
        sa.Column('shop_address', sa.String(255), nullable=True),
        sa.Column('shop_city', sa.String(100), nullable=True),
        sa.Column('shop_state', sa.String(50), nullable=True),
        sa.Column('shop_zip_code', sa.String(20), nullable=True),
        sa.Column('service_radius', sa.Integer(), server_default='25', nullable=False),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', name='uq_provider_profiles_user_id'),
        sa.CheckConstraint('service_radius >= 1', name='ck_provider_service_radius'),
    )
    op.create_index('ix_provider_profiles_is_active', 'provider_profiles', ['is_active'])

    # 3. vehicles
    op.create_table(
        'vehicles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk('owner_id'),
        sa.Column('make', sa.String(50), nullable=False),
        sa.Column('model', sa.String(100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('vin', sa.String(17), nullable=True),
        sa.Column('license_plate', sa.String(20), nullable=True),
        sa.Column('mileage', sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_vehicles_owner_id', 'vehicles', ['owner_id'])
    op.create_index('ix_vehicles_created_at', 'vehicles', ['created_at'])

    # 4. maintenance_records
    op.create_table(
        'maintenance_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'vehicle_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('vehicles.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('service_type', sa.String(100), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('mileage', sa.Integer(), nullable=True),
        sa.Column('cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(200), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('mileage > 0', name='ck_maintenance_mileage_positive'),
    )
    op.create_index('ix_maintenance_records_vehicle_id', 'maintenance_records', ['vehicle_id'])

    # 5. service_requests
    op.create_table(
        'service_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk('owner_id'),
        sa.Column(
            'vehicle_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('vehicles.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('urgency', sa.String(20), server_default='medium', nullable=False),
        sa.Column('service_type', sa.String(100), nullable=True),
        sa.Column('preferred_location', sa.String(255), nullable=True),
        sa.Column('preferred_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('image_urls', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('status', sa.String(20), server_default='open', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_service_requests_owner_id', 'service_requests', ['owner_id'])
    op.create_index('ix_service_requests_vehicle_id', 'service_requests', ['vehicle_id'])
    op.create_index('ix_service_requests_status', 'service_requests', ['status'])
    op.create_index('ix_service_requests_created_at', 'service_requests', ['created_at'])

    # 6. quotes
    op.create_table(
        'quotes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'request_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('service_requests.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk('provider_id'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('estimated_duration', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('warranty', sa.String(200), nullable=True),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_quotes_request_id', 'quotes', ['request_id'])
    op.create_index('ix_quotes_provider_id', 'quotes', ['provider_id'])
    op.create_index('ix_quotes_status', 'quotes', ['status'])

    # 7. jobs - one per accepted quote
    op.create_table(
        'jobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'quote_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('quotes.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'request_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('service_requests.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk('provider_id'),
        _user_fk('owner_id'),
        sa.Column('status', sa.String(30), server_default='pending', nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('quote_id', name='uq_jobs_quote_id'),
    )
    op.create_index('ix_jobs_request_id', 'jobs', ['request_id'])
    op.create_index('ix_jobs_provider_id', 'jobs', ['provider_id'])
    op.create_index('ix_jobs_owner_id', 'jobs', ['owner_id'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])

    # 8. reviews - one per job
    op.create_table(
        'reviews',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'job_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('jobs.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk('owner_id'),
        _user_fk('provider_id'),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('job_id', name='uq_reviews_job_id'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
    )
    op.create_index('ix_reviews_owner_id', 'reviews', ['owner_id'])
    op.create_index('ix_reviews_provider_id', 'reviews', ['provider_id'])

    # 9. conversations and messages
    op.create_table(
        'conversations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'job_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('jobs.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk('owner_id'),
        _user_fk('provider_id'),
        sa.Column('last_message_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('job_id', name='uq_conversations_job_id'),
    )
    op.create_index('ix_conversations_owner_id', 'conversations', ['owner_id'])
    op.create_index('ix_conversations_provider_id', 'conversations', ['provider_id'])
    op.create_index('ix_conversations_last_message_at', 'conversations', ['last_message_at'])

    op.create_table(
        'messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'conversation_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk('sender_id'),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])

    # 10. notifications
    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk('user_id'),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(500), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    # 11. activities - dashboard timeline
    op.create_table(
        'activities',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk('user_id'),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])

    # 12. audit_logs - no FK so the trail survives user deletion
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('changes', postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('metadata', postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    # 13. services - public catalogue
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(100), nullable=True),
        sa.Column('is_popular', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('display_order', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('slug', name='uq_services_slug'),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        'services',
        'audit_logs',
        'activities',
        'notifications',
        'messages',
        'conversations',
        'reviews',
        'jobs',
        'quotes',
        'service_requests',
        'maintenance_records',
        'vehicles',
        'provider_profiles',
        'users',
    ):
        op.drop_table(table)
