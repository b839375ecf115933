# ruff: noqa: I001
"""Tracker core tables: categories, expenses, budgets.

Revision ID: 0001_tracker_core
Revises: None
Create Date: 2025-10-17
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_tracker_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # categories (name uniqueness is case-insensitive and app-enforced)
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=False, server_default=sa.text("'blue'")),
        sa.Column(
            "symbol_name",
            sa.String(),
            nullable=False,
            server_default=sa.text("'tag.fill'"),
        ),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_demo", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id"),
            nullable=False,
        ),
    )
    op.create_index("ix_expenses_date", "expenses", ["date"])
    op.create_index("ix_expenses_category_id", "expenses", ["category_id"])

    # No unique (category_id, current_month) constraint: duplicates are
    # tolerated and surfaced by the service layer.
    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id"),
            nullable=False,
        ),
        sa.Column("monthly_limit", sa.Numeric(12, 2), nullable=False),
        sa.Column("current_month", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_demo", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint("monthly_limit > 0", name="ck_budgets_monthly_limit"),
    )
    op.create_index("ix_budgets_category_month", "budgets", ["category_id", "current_month"])

    # Sentinel category used when a category is deleted.
    op.execute(
        sa.text(
            "INSERT INTO categories (name, color, symbol_name) "
            "VALUES ('Uncategorized', 'gray', 'questionmark.circle.fill')"
        )
    )


def downgrade() -> None:
    op.drop_index("ix_budgets_category_month", table_name="budgets")
    op.drop_table("budgets")
    op.drop_index("ix_expenses_category_id", table_name="expenses")
    op.drop_index("ix_expenses_date", table_name="expenses")
    op.drop_table("expenses")
    op.drop_table("categories")
