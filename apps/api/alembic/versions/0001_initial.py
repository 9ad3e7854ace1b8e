"""Initial schema - departments, users, jobs and job history

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the pipeline, staff and job tables."""

    # ==========================================================================
    # Departments (pipeline stages, seeded with `printshop seed-departments`)
    # ==========================================================================
    op.create_table(
        'departments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
    )

    # ==========================================================================
    # Users (staff profiles)
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column(
            'department_id',
            sa.Uuid(),
            sa.ForeignKey('departments.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('auth_provider', sa.String(20), nullable=False),
        sa.Column('provider_subject', sa.String(255), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_users_role', 'users', ['role'])

    # ==========================================================================
    # Jobs
    # ==========================================================================
    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('specifications', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(100), nullable=False),
        sa.Column(
            'department_id',
            sa.Uuid(),
            sa.ForeignKey('departments.id'),
            nullable=False,
        ),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('approval_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_jobs_department', 'jobs', ['department_id'])
    op.create_index('idx_jobs_created', 'jobs', ['created_at'])

    # ==========================================================================
    # Job updates (append-only history, removed with the job)
    # ==========================================================================
    op.create_table(
        'job_updates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'job_id',
            sa.Uuid(),
            sa.ForeignKey('jobs.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'user_id',
            sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column(
            'department_id',
            sa.Uuid(),
            sa.ForeignKey('departments.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('new_status', sa.String(100), nullable=True),
        sa.Column('new_priority', sa.String(20), nullable=True),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('file_urls', sa.JSON(), nullable=True),
    )
    op.create_index('idx_job_updates_job_ts', 'job_updates', ['job_id', 'timestamp'])


def downgrade() -> None:
    op.drop_table('job_updates')
    op.drop_table('jobs')
    op.drop_table('users')
    op.drop_table('departments')
