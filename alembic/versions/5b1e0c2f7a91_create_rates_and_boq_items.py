"""create rates and boq_items tables

Revision ID: 5b1e0c2f7a91
Revises:
Create Date: 2026-10-18 09:12:40.118532

Base schema: the rate catalog and the stored BOQ from the last upload.
Idempotent - skips tables that create_all() already made.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c2f7a91'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("rates"):
        op.create_table(
            "rates",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("item_name", sa.String(length=255), nullable=False),
            sa.Column("unit", sa.String(length=50), nullable=False),
            sa.Column("rate_value", sa.Float(), nullable=False),
            sa.Column("keywords", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint("rate_value >= 0", name="ck_rates_rate_value_non_negative"),
        )
        op.create_index("ix_rates_id", "rates", ["id"])

    if not _table_exists("boq_items"):
        op.create_table(
            "boq_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("quantity", sa.Float(), nullable=False),
            sa.Column("unit", sa.String(length=50), nullable=False),
            sa.Column("rate", sa.Float(), nullable=True),
            sa.Column("total", sa.Float(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint("quantity >= 0", name="ck_boq_items_quantity_non_negative"),
        )
        op.create_index("ix_boq_items_id", "boq_items", ["id"])


def downgrade() -> None:
    op.drop_index("ix_boq_items_id", table_name="boq_items")
    op.drop_table("boq_items")
    op.drop_index("ix_rates_id", table_name="rates")
    op.drop_table("rates")
