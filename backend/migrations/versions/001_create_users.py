"""
Alembic migration: Create users table.

Users carry system generated string identifiers, a status lifecycle column
and a version counter for optimistic locking.

Revision ID: 001
Revises:
Create Date: 2025-10-03 14:30:25.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_STATUSES = ('ACTIVE', 'INACTIVE', 'SUSPENDED', 'PENDING', 'LOCKED', 'DELETED')


def upgrade() -> None:
    """Create users table with its indexes and constraints."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=50), nullable=False,
                  comment='System generated user identifier'),
        sa.Column('username', sa.String(length=100), nullable=False,
                  comment='Unique login name'),
        sa.Column('email', sa.String(length=100), nullable=False,
                  comment='Unique email address'),
        sa.Column('password_hash', sa.String(length=255), nullable=False,
                  comment='Bcrypt hashed password'),
        sa.Column('first_name', sa.String(length=50), nullable=True),
        sa.Column('last_name', sa.String(length=50), nullable=True),
        sa.Column(
            'status',
            sa.Enum(*USER_STATUSES, name='user_status', native_enum=False, length=20,
                    create_constraint=True),
            nullable=False,
            server_default='ACTIVE',
            comment='Account lifecycle status',
        ),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1',
                  comment='Optimistic locking version'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()'),
                  comment='Timestamp when record was created'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()'),
                  comment='Timestamp when record was last updated'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.CheckConstraint('length(username) >= 1', name='ck_users_username_min_length'),
        sa.CheckConstraint('length(email) >= 3', name='ck_users_email_min_length'),
        comment='User accounts with soft-delete status lifecycle',
    )

    op.create_index('ix_users_status', 'users', ['status'])
    op.create_index('ix_users_status_created', 'users', ['status', 'created_at'])


def downgrade() -> None:
    """Drop users table."""
    op.drop_index('ix_users_status_created', table_name='users')
    op.drop_index('ix_users_status', table_name='users')
    op.drop_table('users')
