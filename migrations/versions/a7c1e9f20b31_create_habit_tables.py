"""create habit tables

Revision ID: a7c1e9f20b31
Revises:
Create Date: 2026-10-19 10:12:44.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a7c1e9f20b31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # 2. event_log
    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=128), nullable=False),
        sa.Column('payload_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_account_id', 'event_log', ['account_id'])
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])

    # 3. habits
    op.create_table(
        'habits',
        sa.Column('habit_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='boolean'),
        sa.Column('target_value', sa.Integer(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scheduled_days', sa.String(length=16), nullable=True),
        sa.Column('frozen_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak_frozen_at', sa.Date(), nullable=True),
        sa.Column('created_at', sa.Date(), nullable=False),
        sa.Column('paused_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('archived_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('habit_id')
    )
    op.create_index('ix_habits_account_id', 'habits', ['account_id'])
    op.create_index('ix_habits_archived_at', 'habits', ['archived_at'])

    # 4. habit_completions
    op.create_table(
        'habit_completions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('habit_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('habit_id', 'date', name='uq_habit_completion_date')
    )
    op.create_index('ix_habit_completions_habit_id', 'habit_completions', ['habit_id'])
    op.create_index('ix_habit_completions_date', 'habit_completions', ['date'])

    # 5. active_timers
    op.create_table(
        'active_timers',
        sa.Column('habit_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=False), nullable=True),
        sa.Column('accumulated_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_running', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('habit_id')
    )

    # 6. holidays
    op.create_table(
        'holidays',
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('date')
    )

    # 7. day_offs
    op.create_table(
        'day_offs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'date', name='uq_day_off_account_date')
    )
    op.create_index('ix_day_offs_account_id', 'day_offs', ['account_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('day_offs')
    op.drop_table('holidays')
    op.drop_table('active_timers')
    op.drop_table('habit_completions')
    op.drop_table('habits')
    op.drop_table('event_log')
    op.drop_table('users')
