# backend/alembic/versions/001_core_schema.py
"""Core schema - users, mentor profiles and bookings

Revision ID: 001_core_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the account and booking tables. On PostgreSQL the mentor embedding
column uses pgvector, and an exclusion constraint keeps a mentor's pending
and confirmed sessions from overlapping even when two requests race past the
application-level availability check.
"""
from typing import Sequence, Union

from alembic import op
from pgvector.sqlalchemy import Vector
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_core_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSIONS = 1536


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        DECLARE
            extensions_schema_exists BOOLEAN;
            extension_installed BOOLEAN;
        BEGIN
            SELECT EXISTS (
                SELECT 1 FROM pg_namespace WHERE nspname = 'extensions'
            ) INTO extensions_schema_exists;

            SELECT EXISTS (
                SELECT 1 FROM pg_extension WHERE extname = '{extension_name}'
            ) INTO extension_installed;

            IF NOT extension_installed THEN
                IF extensions_schema_exists THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END
        $$;
        """
    )


def upgrade() -> None:
    """Create users, mentor_profiles and bookings."""
    print("Creating core MatePeak tables...")

    bind = op.get_bind()
    is_postgres = bind is not None and bind.dialect.name == "postgresql"

    if is_postgres:
        _create_extension_prefer_extensions_schema("vector")
        _create_extension_prefer_extensions_schema("btree_gist")

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('student', 'mentor', 'admin')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    embedding_type = Vector(EMBEDDING_DIMENSIONS) if is_postgres else sa.JSON()
    op.create_table(
        "mentor_profiles",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("username", sa.String(60), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("category", sa.String(80), nullable=True),
        sa.Column("pricing", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("embedding", embedding_type, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("username"),
        sa.CheckConstraint("pricing >= 0", name="ck_mentor_profiles_pricing"),
    )
    op.create_index("ix_mentor_profiles_category", "mentor_profiles", ["category"])
    if is_postgres:
        op.execute(
            """
            CREATE INDEX IF NOT EXISTS ix_mentor_profiles_embedding
              ON mentor_profiles USING hnsw (embedding vector_cosine_ops)
            """
        )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("mentor_id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("session_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("session_type", sa.String(100), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("meeting_link", sa.String(255), nullable=True),
        sa.Column("reminder_24h_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_1h_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cancelled_by_id", sa.String(26), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        sa.CheckConstraint("duration > 0", name="ck_bookings_duration_positive"),
        sa.CheckConstraint("total_amount >= 0", name="ck_bookings_amount_non_negative"),
        sa.CheckConstraint("end_time > session_time", name="ck_bookings_time_order"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_mentor_id", "bookings", ["mentor_id"])
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "ix_bookings_mentor_window", "bookings", ["mentor_id", "session_time", "end_time"]
    )

    if is_postgres:
        # '[)' ranges: back-to-back sessions do not collide
        op.execute(
            """
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_mentor
              EXCLUDE USING gist (
                mentor_id WITH =,
                tstzrange(session_time, end_time, '[)') WITH &&
              )
              WHERE (status IN ('pending', 'confirmed'))
            """
        )

    print("Core MatePeak tables created")


def downgrade() -> None:
    """Drop bookings, mentor_profiles and users."""
    bind = op.get_bind()
    if bind is not None and bind.dialect.name == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_mentor")
        op.execute("DROP INDEX IF EXISTS ix_mentor_profiles_embedding")

    op.drop_index("ix_bookings_mentor_window", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_index("ix_bookings_mentor_id", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_mentor_profiles_category", table_name="mentor_profiles")
    op.drop_table("mentor_profiles")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
