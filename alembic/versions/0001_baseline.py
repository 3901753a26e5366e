"""Baseline migration - tenants, users, checksheets, results and templates

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Portable DDL (PostgreSQL and SQLite).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create all GenSheet tables."""

    # ==========================================================================
    # Tenants & users
    # ==========================================================================
    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        _timestamp('created_at'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255)),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='INSPECTOR'),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='SET NULL'),
        ),
        sa.Column('phone', sa.String(50)),
        sa.Column('image', sa.String(1024)),
        sa.Column('language', sa.String(10), nullable=False, server_default='en'),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='UTC'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    # ==========================================================================
    # Checksheets & checkpoints
    # ==========================================================================
    op.create_table(
        'checksheets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('industry', sa.String(100)),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_template', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column(
            'creator_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'organization_id', sa.Uuid(),
            sa.ForeignKey('organizations.id', ondelete='SET NULL'),
        ),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('idx_checksheets_org', 'checksheets', ['organization_id'])
    op.create_index('idx_checksheets_creator', 'checksheets', ['creator_id'])

    op.create_table(
        'checkpoints',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'checksheet_id', sa.Uuid(),
            sa.ForeignKey('checksheets.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('field_type', sa.String(20), nullable=False, server_default='TEXT'),
        sa.Column('section', sa.String(255), nullable=False, server_default='General'),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.UniqueConstraint('checksheet_id', 'order', name='uq_checkpoints_checksheet_order'),
    )

    # ==========================================================================
    # Executions
    # ==========================================================================
    op.create_table(
        'checksheet_results',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'checksheet_id', sa.Uuid(),
            sa.ForeignKey('checksheets.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'inspector_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('status', sa.String(20), nullable=False, server_default='IN_PROGRESS'),
        sa.Column('location', sa.String(500)),
        sa.Column('gps_lat', sa.Float()),
        sa.Column('gps_lng', sa.Float()),
        sa.Column('notes', sa.Text()),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        _timestamp('completed_at', nullable=True),
    )
    op.create_index('idx_results_checksheet', 'checksheet_results', ['checksheet_id'])
    op.create_index('idx_results_inspector', 'checksheet_results', ['inspector_id'])

    op.create_table(
        'checkpoint_responses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'result_id', sa.Uuid(),
            sa.ForeignKey('checksheet_results.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'checkpoint_id', sa.Uuid(),
            sa.ForeignKey('checkpoints.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('value', sa.Text()),
        sa.Column('text_value', sa.Text()),
        sa.Column('number_value', sa.Float()),
        sa.Column('bool_value', sa.Boolean()),
        _timestamp('date_value', nullable=True),
        sa.Column('photo_urls', sa.JSON(), nullable=False),
        sa.Column('file_urls', sa.JSON(), nullable=False),
        sa.Column('gps_lat', sa.Float()),
        sa.Column('gps_lng', sa.Float()),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('notes', sa.Text()),
        _timestamp('created_at'),
        sa.UniqueConstraint('result_id', 'checkpoint_id', name='uq_responses_result_checkpoint'),
    )

    # ==========================================================================
    # Template catalog
    # ==========================================================================
    op.create_table(
        'best_practice_templates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(100), nullable=False, server_default='general'),
        sa.Column('industry', sa.String(100)),
        sa.Column('template_data', sa.JSON(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'created_by_user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'),
        ),
        _timestamp('created_at'),
    )


def downgrade() -> None:
    op.drop_table('best_practice_templates')
    op.drop_table('checkpoint_responses')
    op.drop_table('checksheet_results')
    op.drop_table('checkpoints')
    op.drop_index('idx_checksheets_creator', table_name='checksheets')
    op.drop_index('idx_checksheets_org', table_name='checksheets')
    op.drop_table('checksheets')
    op.drop_table('users')
    op.drop_table('organizations')
