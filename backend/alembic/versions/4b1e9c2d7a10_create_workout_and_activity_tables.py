"""create users, exercise catalogue, workout logs and daily activities

Revision ID: 4b1e9c2d7a10
Revises:
Create Date: 2026-10-19 10:12:31.418204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# define the enum type once so both directions refer to the same object
activity_status = sa.Enum('pending', 'completed', name='activity_status')


# revision identifiers, used by Alembic.
revision: str = '4b1e9c2d7a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1) users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2) catalogue
    op.create_table(
        'muscle_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=40), nullable=False, unique=True),
    )
    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image', sa.String(length=255), nullable=True),
        sa.Column('muscle_group_id', sa.Integer(), sa.ForeignKey('muscle_groups.id'), nullable=True, index=True),
    )

    # 3) workout logs
    op.create_table(
        'exercise_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('exercise_id', sa.Integer(), sa.ForeignKey('exercises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('muscle_group_id', sa.Integer(), sa.ForeignKey('muscle_groups.id'), nullable=False, index=True),
        sa.UniqueConstraint('user_id', 'exercise_id', 'muscle_group_id', name='uq_plan_user_exercise_group'),
    )
    op.create_table(
        'workout_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('exercise_plans.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('set_no', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Numeric(10, 2), nullable=True),
        sa.Column('reps', sa.Integer(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False, index=True),
        sa.UniqueConstraint('plan_id', 'set_no', 'user_id', 'date', name='uq_log_plan_set_user_date'),
    )

    # 4) activities
    op.create_table(
        'activity_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('icon', sa.String(length=60), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    )
    op.create_table(
        'daily_activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('activity_templates.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False, index=True),
        sa.Column('status', activity_status, nullable=False, server_default='pending'),
        sa.UniqueConstraint('template_id', 'user_id', 'date', name='uq_daily_template_user_date'),
    )


def downgrade() -> None:
    op.drop_table('daily_activities')
    op.drop_table('activity_templates')
    op.drop_table('workout_logs')
    op.drop_table('exercise_plans')
    op.drop_table('exercises')
    op.drop_table('muscle_groups')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
    activity_status.drop(op.get_bind(), checkfirst=True)
