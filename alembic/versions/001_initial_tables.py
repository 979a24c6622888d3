"""Students, progress snapshots, daily activity and badges.

Revision ID: 001_initial_tables
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Students ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS students (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            leetcode_username VARCHAR(64) UNIQUE NOT NULL,
            leetcode_profile_link VARCHAR(256) NOT NULL,
            profile_photo TEXT,
            batch VARCHAR(16),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_synced_at TIMESTAMPTZ,
            platform_streak INTEGER NOT NULL DEFAULT 0,
            total_active_days INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_students_batch ON students(batch)")

    # --- Snapshots (period 0 = live row, 1..n = weeks) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS snapshots (
            id BIGSERIAL PRIMARY KEY,
            student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            period INTEGER NOT NULL,
            total_solved INTEGER NOT NULL DEFAULT 0,
            easy_solved INTEGER NOT NULL DEFAULT 0,
            medium_solved INTEGER NOT NULL DEFAULT 0,
            hard_solved INTEGER NOT NULL DEFAULT 0,
            total_submissions INTEGER NOT NULL DEFAULT 0,
            total_accepted INTEGER NOT NULL DEFAULT 0,
            ranking INTEGER NOT NULL DEFAULT 0,
            captured_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT snapshots_student_id_period_key UNIQUE(student_id, period),
            CONSTRAINT snapshots_period_check CHECK (period >= 0)
        )
    """)

    # --- Daily activity ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_activity (
            id BIGSERIAL PRIMARY KEY,
            student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            day DATE NOT NULL,
            count INTEGER NOT NULL DEFAULT 0,
            CONSTRAINT daily_activity_student_id_day_key UNIQUE(student_id, day)
        )
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS student_badges (
            id SERIAL PRIMARY KEY,
            student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            badge_type VARCHAR(32) NOT NULL,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            metadata JSON NOT NULL DEFAULT '{}',
            CONSTRAINT student_badges_student_id_badge_type_key UNIQUE(student_id, badge_type)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_student_badges_earned
        ON student_badges(earned_at DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS student_badges")
    op.execute("DROP TABLE IF EXISTS daily_activity")
    op.execute("DROP TABLE IF EXISTS snapshots")
    op.execute("DROP TABLE IF EXISTS students")
