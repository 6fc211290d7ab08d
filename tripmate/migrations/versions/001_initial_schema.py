"""Initial schema — trips, members, expenses, splits.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  1. PostgreSQL enum types (must exist before tables that reference them)
  2. Tables in FK dependency order (trips → trip_members → expenses
     → expense_splits)
  3. Indexes (including the partial index idx_expenses_unsettled)

ON DELETE policies:
  trip_members.trip_id            → CASCADE   (roster owned by trip)
  expenses.trip_id                → CASCADE   (expenses owned by trip)
  expenses.paid_by_member_id      → RESTRICT  (cannot delete a paying member)
  expense_splits.expense_id       → CASCADE   (splits owned by expense)
  expense_splits.member_id        → RESTRICT  (cannot delete a member in a split)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """
    Apply the full initial schema.

    Enum types are created via op.execute() so the exact SQL is explicit and
    reviewable; the columns then reference them with create_type=False.
    """

    # ── Step 1: PostgreSQL enum types ─────────────────────────────────────

    op.execute("""
        CREATE TYPE member_role_enum AS ENUM ('owner', 'member')
    """)

    op.execute("""
        CREATE TYPE expense_category_enum AS ENUM (
            'food',
            'transport',
            'accommodation',
            'activity',
            'shopping',
            'other'
        )
    """)

    # ── Step 2: trips ──────────────────────────────────────────────────────

    op.create_table(
        "trips",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("destinations", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_trips"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_trips_name_nonempty",
        ),
    )

    # ── Step 3: trip_members ───────────────────────────────────────────────
    # user_id is NULL for manual (name-only) members.
    # UNIQUE(trip_id, user_id): NULLs never collide.

    op.create_table(
        "trip_members",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "trip_id",
            sa.String(36),
            sa.ForeignKey("trips.id", ondelete="CASCADE", name="fk_trip_members_trip"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("display_name", sa.String(50), nullable=False),
        sa.Column(
            "role",
            postgresql.ENUM("owner", "member", name="member_role_enum", create_type=False),
            nullable=False,
            server_default="member",
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_trip_members"),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_members_trip_user"),
        sa.CheckConstraint(
            "LENGTH(TRIM(display_name)) > 0",
            name="ck_trip_members_display_name_nonempty",
        ),
    )

    # ── Step 4: expenses ───────────────────────────────────────────────────
    # amount is whole yen. paid_by_member_id is nullable (payer not known yet).

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "trip_id",
            sa.String(36),
            sa.ForeignKey("trips.id", ondelete="CASCADE", name="fk_expenses_trip"),
            nullable=False,
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column(
            "category",
            postgresql.ENUM(
                "food", "transport", "accommodation",
                "activity", "shopping", "other",
                name="expense_category_enum",
                create_type=False,
            ),
            nullable=False,
            server_default="other",
        ),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column(
            "paid_by_member_id",
            sa.String(36),
            sa.ForeignKey("trip_members.id", ondelete="RESTRICT", name="fk_expenses_payer"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column(
            "is_settled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("FALSE"),
        ),
        sa.Column(
            "is_ai_generated",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("FALSE"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.CheckConstraint(
            "amount >= 0 AND amount <= 100000000",
            name="ck_expenses_amount_range",
        ),
        sa.CheckConstraint(
            "LENGTH(TRIM(title)) > 0",
            name="ck_expenses_title_nonempty",
        ),
    )

    # ── Step 5: expense_splits ─────────────────────────────────────────────
    # position is the index in the split list; the highest position absorbs
    # the division remainder.

    op.create_table(
        "expense_splits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "expense_id",
            sa.String(36),
            sa.ForeignKey("expenses.id", ondelete="CASCADE", name="fk_expense_splits_expense"),
            nullable=False,
        ),
        sa.Column(
            "member_id",
            sa.String(36),
            sa.ForeignKey("trip_members.id", ondelete="RESTRICT", name="fk_expense_splits_member"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_expense_splits"),
        sa.UniqueConstraint("expense_id", "member_id", name="uq_expense_splits_expense_member"),
    )

    # ── Step 6: Indexes ────────────────────────────────────────────────────

    op.create_index("ix_trip_members_trip_id", "trip_members", ["trip_id"])
    op.create_index("ix_expenses_trip_id", "expenses", ["trip_id"])

    # Partial index: the settlement summary always queries
    # WHERE is_settled IS FALSE.
    op.create_index(
        "idx_expenses_unsettled",
        "expenses",
        ["trip_id"],
        postgresql_where=sa.text("is_settled IS FALSE"),
    )

    op.create_index("ix_expense_splits_expense_id", "expense_splits", ["expense_id"])
    op.create_index("ix_expense_splits_member_id", "expense_splits", ["member_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    Provided for local development reset. In production, prefer a corrective
    migration over a rollback.
    """

    op.drop_index("ix_expense_splits_member_id",  table_name="expense_splits")
    op.drop_index("ix_expense_splits_expense_id", table_name="expense_splits")
    op.drop_index("idx_expenses_unsettled",       table_name="expenses")
    op.drop_index("ix_expenses_trip_id",          table_name="expenses")
    op.drop_index("ix_trip_members_trip_id",      table_name="trip_members")

    op.drop_table("expense_splits")
    op.drop_table("expenses")
    op.drop_table("trip_members")
    op.drop_table("trips")

    op.execute("DROP TYPE IF EXISTS expense_category_enum")
    op.execute("DROP TYPE IF EXISTS member_role_enum")
