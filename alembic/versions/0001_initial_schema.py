"""
Initial schema: users, profiles, generation sessions and flashcards
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# --- Alembic identifiers ---
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(128), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("total_cards_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cards_generated_by_ai", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("daily_generation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_generation_date", sa.Date(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("total_cards_created >= 0", name="ck_profiles_total_cards_created_min"),
        sa.CheckConstraint(
            "total_cards_generated_by_ai >= 0", name="ck_profiles_total_cards_generated_by_ai_min"
        ),
        sa.CheckConstraint("daily_generation_count >= 0", name="ck_profiles_daily_generation_count_min"),
    )

    op.create_table(
        "generation_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("input_text", sa.Text(), nullable=False),
        sa.Column("generated_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("accepted_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rejected_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("generation_time_ms", sa.Integer(), nullable=True),
        sa.Column("tokens_used", sa.Integer(), nullable=True),
        sa.Column("model_used", sa.String(200), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "status IN ('success', 'failed', 'partial')", name="ck_generation_sessions_status"
        ),
        sa.CheckConstraint(
            "char_length(input_text) BETWEEN 1000 AND 10000", name="ck_generation_sessions_input_length"
        ),
    )
    op.create_index(
        "ix_generation_sessions_user_created", "generation_sessions", ["user_id", "created_at"]
    )

    op.create_table(
        "flashcards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "generation_session_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("generation_sessions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("front", sa.String(1000), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("source", sa.String(16), nullable=False, server_default="manual"),
        sa.Column("ease_factor", sa.Float(), nullable=False, server_default="2.5"),
        sa.Column("interval_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("repetitions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "next_review_date",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_factor_min"),
        sa.CheckConstraint("interval_days >= 0", name="ck_flashcards_interval_days_min"),
        sa.CheckConstraint("repetitions >= 0", name="ck_flashcards_repetitions_min"),
        sa.CheckConstraint("review_count >= 0", name="ck_flashcards_review_count_min"),
        sa.CheckConstraint("source IN ('manual', 'ai_generated')", name="ck_flashcards_source"),
        sa.CheckConstraint("char_length(back) <= 2000", name="ck_flashcards_back_length"),
    )
    op.create_index("ix_flashcards_user_id", "flashcards", ["user_id"])
    op.create_index("ix_flashcards_generation_session_id", "flashcards", ["generation_session_id"])
    op.create_index("ix_flashcards_user_next_review", "flashcards", ["user_id", "next_review_date"])


def downgrade():
    op.drop_index("ix_flashcards_user_next_review", table_name="flashcards")
    op.drop_index("ix_flashcards_generation_session_id", table_name="flashcards")
    op.drop_index("ix_flashcards_user_id", table_name="flashcards")
    op.drop_table("flashcards")
    op.drop_index("ix_generation_sessions_user_created", table_name="generation_sessions")
    op.drop_table("generation_sessions")
    op.drop_table("profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
