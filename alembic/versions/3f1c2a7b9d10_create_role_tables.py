"""create_role_tables

Revision ID: 3f1c2a7b9d10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1c2a7b9d10'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False, comment='User ID (UUID)'),
        sa.Column('email', sa.String(length=255), nullable=False, comment='User email address'),
        sa.Column('full_name', sa.String(length=255), nullable=True, comment='Display name'),
        sa.Column('is_blocked', sa.Boolean(), nullable=False, comment='Whether the user is blocked'),
        sa.Column('blocked_at', sa.DateTime(timezone=True), nullable=True, comment='Timestamp when the user was blocked'),
        sa.Column('block_reason', sa.Text(), nullable=True, comment='Reason given when blocking'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True, comment='Timestamp of last successful login'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False, comment='Foreign key to users table'),
        sa.Column('role', sa.String(length=20), nullable=False, comment='Role value'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint("role IN ('participant', 'viewer', 'host', 'admin', 'super_admin')", name='ck_user_roles_role'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role')
    )
    with op.batch_alter_table('user_roles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_roles_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_roles_role'), ['role'], unique=False)

    op.create_table('role_audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='Unique identifier'),
        sa.Column('actor_id', sa.String(length=36), nullable=False, comment='ID of user who made the change'),
        sa.Column('target_user_id', sa.String(length=36), nullable=False, comment='ID of user whose roles changed'),
        sa.Column('action', sa.String(length=10), nullable=False, comment='Kind of change'),
        sa.Column('role', sa.String(length=20), nullable=False, comment='Role involved'),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when the change occurred (UTC)'),
        sa.CheckConstraint("action IN ('add', 'remove', 'change', 'transfer', 'block', 'unblock')", name='ck_role_audit_logs_action'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('role_audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_role_audit_logs_actor_id'), ['actor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_role_audit_logs_target_user_id'), ['target_user_id'], unique=False)
        batch_op.create_index('ix_role_audit_logs_occurred_at_desc', [sa.text('occurred_at DESC')], unique=False)

    # Role audit entries are append-only
    op.execute(
        """
        CREATE TRIGGER IF NOT EXISTS prevent_role_audit_log_update
        BEFORE UPDATE ON role_audit_logs
        BEGIN
            SELECT RAISE(ABORT, 'Role audit log entries are immutable and cannot be updated');
        END;
        """
    )
    op.execute(
        """
        CREATE TRIGGER IF NOT EXISTS prevent_role_audit_log_delete
        BEFORE DELETE ON role_audit_logs
        BEGIN
            SELECT RAISE(ABORT, 'Role audit log entries are immutable and cannot be deleted');
        END;
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TRIGGER IF EXISTS prevent_role_audit_log_update")
    op.execute("DROP TRIGGER IF EXISTS prevent_role_audit_log_delete")

    with op.batch_alter_table('role_audit_logs', schema=None) as batch_op:
        batch_op.drop_index('ix_role_audit_logs_occurred_at_desc')
        batch_op.drop_index(batch_op.f('ix_role_audit_logs_target_user_id'))
        batch_op.drop_index(batch_op.f('ix_role_audit_logs_actor_id'))
    op.drop_table('role_audit_logs')

    with op.batch_alter_table('user_roles', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_user_roles_role'))
        batch_op.drop_index(batch_op.f('ix_user_roles_user_id'))
    op.drop_table('user_roles')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')
