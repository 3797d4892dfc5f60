"""Initial schema: inventory items, sales and sale lines

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(120), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("photo_ref", sa.Text(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_nonneg"),
        sa.CheckConstraint("price >= 0", name="ck_inventory_items_price_nonneg"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_items_position", "inventory_items", ["position"])

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("date", sa.String(64), nullable=False),
        sa.Column("total", sa.Numeric(14, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sales_position", "sales", ["position"])
    op.create_index("ix_sales_date", "sales", ["date"])

    op.create_table(
        "sale_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sale_id", "line_number", name="uq_sale_lines_sale_line"),
    )
    op.create_index("ix_sale_lines_sale_id", "sale_lines", ["sale_id"])
    op.create_index("ix_sale_lines_item_id", "sale_lines", ["item_id"])


def downgrade():
    op.drop_index("ix_sale_lines_item_id", table_name="sale_lines")
    op.drop_index("ix_sale_lines_sale_id", table_name="sale_lines")
    op.drop_table("sale_lines")
    op.drop_index("ix_sales_date", table_name="sales")
    op.drop_index("ix_sales_position", table_name="sales")
    op.drop_table("sales")
    op.drop_index("ix_inventory_items_position", table_name="inventory_items")
    op.drop_table("inventory_items")
