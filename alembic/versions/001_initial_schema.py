"""Initial schema.

Creates sessions, users, opportunities, opportunity_skills, applications,
badges and user_badges together with their enum types.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ENUMS: dict[str, tuple[str, ...]] = {
    "user_role": ("student", "admin"),
    "opportunity_type": ("teaching", "donation", "mentoring", "community_service"),
    "duration": ("instant", "1-3days", "1week", "2-4weeks", "custom"),
    "opportunity_status": ("open", "closed", "filled"),
    "visibility": ("public", "private"),
    "application_status": (
        "pending",
        "accepted",
        "hours_submitted",
        "hours_approved",
        "completed",
        "rejected",
    ),
    "badge_type": ("milestone", "special"),
}


def upgrade() -> None:
    for name, values in _ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(f"""
            DO $$ BEGIN
                CREATE TYPE {name} AS ENUM ({labels});
            EXCEPTION WHEN duplicate_object THEN NULL;
            END $$
        """)

    # --- Sessions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            sid VARCHAR(128) PRIMARY KEY,
            sess JSONB NOT NULL,
            expire TIMESTAMPTZ NOT NULL,
            user_id VARCHAR(36)
        )
    """)
    op.execute('CREATE INDEX IF NOT EXISTS "IDX_session_expire" ON sessions(expire)')
    op.execute("CREATE INDEX IF NOT EXISTS ix_sessions_user_id ON sessions(user_id)")

    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(36) PRIMARY KEY,
            email VARCHAR(320) NOT NULL,
            password VARCHAR(256),
            first_name VARCHAR(100),
            last_name VARCHAR(100),
            profile_image_url VARCHAR(512),
            role user_role NOT NULL DEFAULT 'student',
            program VARCHAR(64),
            coins INTEGER NOT NULL DEFAULT 0,
            anonymize_leaderboard BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email UNIQUE (email)
        )
    """)

    # --- Opportunities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS opportunities (
            id VARCHAR(36) PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            short_description VARCHAR(160) NOT NULL,
            full_description TEXT NOT NULL,
            type opportunity_type NOT NULL,
            duration duration NOT NULL,
            custom_duration VARCHAR(100),
            location VARCHAR(200),
            schedule VARCHAR(200),
            capacity INTEGER,
            total_required_hours INTEGER,
            status opportunity_status NOT NULL DEFAULT 'open',
            coins_per_hour INTEGER NOT NULL DEFAULT 10,
            max_coins INTEGER NOT NULL DEFAULT 100,
            visibility visibility NOT NULL DEFAULT 'public',
            contact_email VARCHAR(320),
            contact_phone VARCHAR(32),
            image_url VARCHAR(512),
            created_by VARCHAR(36) NOT NULL REFERENCES users(id),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_opportunities_created_by ON opportunities(created_by)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_opportunities_status_created ON opportunities(status, created_at DESC)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS opportunity_skills (
            id SERIAL PRIMARY KEY,
            opportunity_id VARCHAR(36) NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
            skill VARCHAR(64) NOT NULL,
            CONSTRAINT uq_opportunity_skills_pair UNIQUE (opportunity_id, skill)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_opportunity_skills_opportunity_id ON opportunity_skills(opportunity_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_opportunity_skills_skill ON opportunity_skills(skill)")

    # --- Applications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS applications (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            opportunity_id VARCHAR(36) NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
            status application_status NOT NULL DEFAULT 'pending',
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            completed_at TIMESTAMPTZ,
            notes TEXT,
            coins_awarded INTEGER NOT NULL DEFAULT 0,
            hours_completed INTEGER NOT NULL DEFAULT 0,
            submitted_hours INTEGER NOT NULL DEFAULT 0,
            hour_submission_date TIMESTAMPTZ,
            admin_feedback TEXT,
            CONSTRAINT uq_applications_user_opportunity UNIQUE (user_id, opportunity_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_applications_user_id ON applications(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_applications_opportunity_id ON applications(opportunity_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_applications_status_completed ON applications(status, completed_at)")

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            description TEXT,
            icon VARCHAR(64),
            coins_required INTEGER NOT NULL,
            type badge_type NOT NULL DEFAULT 'milestone',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_badges_name UNIQUE (name)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id VARCHAR(36) NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_badges_user_badge UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_badges_user_id ON user_badges(user_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS applications CASCADE")
    op.execute("DROP TABLE IF EXISTS opportunity_skills CASCADE")
    op.execute("DROP TABLE IF EXISTS opportunities CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP TABLE IF EXISTS sessions CASCADE")
    for name in reversed(list(_ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
