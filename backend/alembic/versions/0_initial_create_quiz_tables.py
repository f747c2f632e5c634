"""Initial migration - profiles, quizzes and quiz submissions

Revision ID: 0_initial
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Create enums ──────────────────────────────────────────────────
    # SQLAlchemy's Enum persists member names, not values.
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE role_enum AS ENUM ('STUDENT', 'ADMIN');
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)

    # ── profiles table ────────────────────────────────────────────────
    op.create_table(
        'profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', postgresql.ENUM('STUDENT', 'ADMIN', name='role_enum', create_type=False), nullable=False, server_default='STUDENT'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)

    # ── quizzes table ─────────────────────────────────────────────────
    op.create_table(
        'quizzes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('questions', sa.JSON(), nullable=False),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_limit', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quizzes_is_active', 'quizzes', ['is_active'])

    # ── quiz_submissions table ────────────────────────────────────────
    op.create_table(
        'quiz_submissions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_possible', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_taken', sa.Integer(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quiz_id', 'user_id', name='uq_submission_quiz_user'),
    )
    op.create_index('ix_quiz_submissions_quiz_id', 'quiz_submissions', ['quiz_id'])
    op.create_index('ix_quiz_submissions_user_id', 'quiz_submissions', ['user_id'])
    op.create_index(
        'ix_quiz_submissions_leaderboard',
        'quiz_submissions',
        ['quiz_id', sa.text('score DESC'), sa.text('time_taken ASC NULLS LAST')],
    )


def downgrade() -> None:
    op.drop_index('ix_quiz_submissions_leaderboard', table_name='quiz_submissions')
    op.drop_index('ix_quiz_submissions_user_id', table_name='quiz_submissions')
    op.drop_index('ix_quiz_submissions_quiz_id', table_name='quiz_submissions')
    op.drop_table('quiz_submissions')
    op.drop_index('ix_quizzes_is_active', table_name='quizzes')
    op.drop_table('quizzes')
    op.drop_index('ix_profiles_email', table_name='profiles')
    op.drop_table('profiles')
    op.execute("DROP TYPE IF EXISTS role_enum")
