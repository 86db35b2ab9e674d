"""initial_schema

Revision ID: cur001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates users, rooms, tenants (with curfew status), the append-only
curfew_modifications log, and in-app notifications.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'cur001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='USER',
                  comment='ADMIN or USER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('ADMIN', 'USER')", name='check_user_role_valid'),
    )

    op.create_table(
        'rooms',
        sa.Column('room_id', sa.Integer(), primary_key=True),
        sa.Column('room_number', sa.Integer(), nullable=False, unique=True),
        sa.Column('floor', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'tenants',
        sa.Column('tenant_id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.room_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.user_id', ondelete='SET NULL'),
                  nullable=True, unique=True, comment='Linked login account (optional)'),
        sa.Column('move_in_date', sa.Date(), nullable=True),
        sa.Column('move_out_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('curfew_status', sa.String(30), nullable=False, server_default='NORMAL'),
        sa.Column('curfew_requested_at', sa.DateTime(), nullable=True),
        sa.Column('curfew_approved_at', sa.DateTime(), nullable=True),
        sa.Column('curfew_approved_by', sa.Integer(), sa.ForeignKey('users.user_id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "curfew_status IN ('NORMAL', 'PENDING', 'APPROVED_TEMPORARY', 'APPROVED_PERMANENT')",
            name='check_tenant_curfew_status_valid'
        ),
    )
    op.create_index('ix_tenants_room_id', 'tenants', ['room_id'])
    op.create_index('ix_tenants_is_active', 'tenants', ['is_active'])
    op.create_index('ix_tenants_curfew_status', 'tenants', ['curfew_status'])

    op.create_table(
        'curfew_modifications',
        sa.Column('modification_id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenants.tenant_id', ondelete='CASCADE'), nullable=False),
        sa.Column('modification_type', sa.String(20), nullable=False,
                  comment='REQUEST, APPROVE, REJECT, RESET, or MANUAL_CHANGE'),
        sa.Column('old_status', sa.String(30), nullable=True,
                  comment="Previous curfew status (NULL for a tenant's first entry)"),
        sa.Column('new_status', sa.String(30), nullable=False),
        sa.Column('is_permanent', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment='Only meaningful for APPROVE and MANUAL_CHANGE'),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('modified_by', sa.Integer(), sa.ForeignKey('users.user_id'), nullable=False),
        sa.Column('modified_by_role', sa.String(20), nullable=False,
                  comment='Role of the actor at the time of the change'),
        sa.Column('modified_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "modification_type IN ('REQUEST', 'APPROVE', 'REJECT', 'RESET', 'MANUAL_CHANGE')",
            name='check_curfew_modification_type_valid'
        ),
    )
    op.create_index('ix_curfew_modifications_tenant_id', 'curfew_modifications', ['tenant_id'])
    op.create_index('ix_curfew_modifications_modified_at', 'curfew_modifications', ['modified_at'])
    op.create_index(
        'ix_curfew_modifications_tenant_modified',
        'curfew_modifications',
        ['tenant_id', 'modified_at']
    )

    op.create_table(
        'notifications',
        sa.Column('notification_id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read_status', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_curfew_modifications_tenant_modified', table_name='curfew_modifications')
    op.drop_index('ix_curfew_modifications_modified_at', table_name='curfew_modifications')
    op.drop_index('ix_curfew_modifications_tenant_id', table_name='curfew_modifications')
    op.drop_table('curfew_modifications')
    op.drop_index('ix_tenants_curfew_status', table_name='tenants')
    op.drop_index('ix_tenants_is_active', table_name='tenants')
    op.drop_index('ix_tenants_room_id', table_name='tenants')
    op.drop_table('tenants')
    op.drop_table('rooms')
    op.drop_table('users')
