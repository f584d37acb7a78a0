"""Initial schema: users, events, custom fields, registrations and verification codes

Revision ID: 3c1f9a2b7d40
Revises: 
Create Date: 2026-10-17 10:12:04.512877

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('role', sa.Enum('MANAGER', 'REGULAR', name='roleenum'), nullable=False, server_default='REGULAR'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create events table
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('short_description', sa.String(500), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('max_capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_event_start_date', 'events', ['start_date'])
    op.create_index('idx_event_creator', 'events', ['created_by'])

    # Create custom fields table
    op.create_table(
        'event_custom_fields',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('control_type', sa.String(20), nullable=False, server_default='text'),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('idx_custom_field_event', 'event_custom_fields', ['event_id'])

    # Create registrations table
    op.create_table(
        'event_registrations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column(
            'status',
            sa.Enum('CONFIRMED', 'CANCELLED', name='registrationstatusenum'),
            nullable=False,
            server_default='CONFIRMED',
        ),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_registration_event', 'event_registrations', ['event_id'])
    op.create_index('idx_registration_user', 'event_registrations', ['user_id'])
    op.create_index('idx_registration_event_user', 'event_registrations', ['event_id', 'user_id'])

    # Create field responses table
    op.create_table(
        'event_field_responses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'registration_id',
            sa.Uuid(),
            sa.ForeignKey('event_registrations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('field_id', sa.Uuid(), sa.ForeignKey('event_custom_fields.id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('value_kind', sa.String(20), nullable=True),
        sa.UniqueConstraint('registration_id', 'field_id', name='uq_registration_field_response'),
    )
    op.create_index('idx_response_registration', 'event_field_responses', ['registration_id'])

    # Create verification codes table
    op.create_table(
        'verification_codes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('code', sa.String(6), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_verification_code_email', 'verification_codes', ['email'])


def downgrade() -> None:
    # Drop tables
    op.drop_table('verification_codes')
    op.drop_table('event_field_responses')
    op.drop_table('event_registrations')
    op.drop_table('event_custom_fields')
    op.drop_table('events')
    op.drop_table('users')

    # Drop enums
    sa.Enum(name='registrationstatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='roleenum').drop(op.get_bind(), checkfirst=True)
