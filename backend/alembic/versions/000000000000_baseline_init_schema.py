"""baseline_init_schema

Revision ID: 000000000000
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the onboarding preference, book catalog, report and event log tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '000000000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        'reading_preferences',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('genres', JSONType, nullable=False),
        sa.Column('difficulty', sa.String(), nullable=True),
        sa.Column('moods', JSONType, nullable=True),
        sa.Column('emotions', JSONType, nullable=True),
        sa.Column('themes', JSONType, nullable=True),
        sa.Column('narrative_styles', JSONType, nullable=True),
        sa.Column('purposes', JSONType, nullable=True),
        sa.Column('length', sa.String(), nullable=True),
        sa.Column('pace', sa.String(), nullable=True),
        sa.Column('selected_book_ids', JSONType, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reading_preferences_user_id', 'reading_preferences', ['user_id'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('external_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('author_name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.String(), nullable=True),
        sa.Column('page_count', sa.Integer(), nullable=True),
        sa.Column('categories', JSONType, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_books_external_id', 'books', ['external_id'])

    # One report per user; regeneration replaces the row
    op.create_table(
        'onboarding_reports',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('version', sa.String(), nullable=False),
        sa.Column('report_data', JSONType, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_onboarding_reports_user_id', 'onboarding_reports', ['user_id'], unique=True)

    op.create_table(
        'event_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('event_name', sa.String(), nullable=False),
        sa.Column('properties', JSONType, nullable=True),
        sa.Column('request_id', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_logs_created_at', 'event_logs', ['created_at'])
    op.create_index('ix_event_logs_event_name', 'event_logs', ['event_name'])
    op.create_index('ix_event_logs_user_id', 'event_logs', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_event_logs_user_id', table_name='event_logs')
    op.drop_index('ix_event_logs_event_name', table_name='event_logs')
    op.drop_index('ix_event_logs_created_at', table_name='event_logs')
    op.drop_table('event_logs')
    op.drop_index('ix_onboarding_reports_user_id', table_name='onboarding_reports')
    op.drop_table('onboarding_reports')
    op.drop_index('ix_books_external_id', table_name='books')
    op.drop_table('books')
    op.drop_index('ix_reading_preferences_user_id', table_name='reading_preferences')
    op.drop_table('reading_preferences')
