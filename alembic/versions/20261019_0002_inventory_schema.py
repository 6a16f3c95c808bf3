"""inventory and bill catalog schema

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: Union[str, Sequence[str], None] = "20261019_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    location_type_enum = sa.Enum("FLOOR", "BUNDLE", "RACK", "SERIAL", name="locationtype")
    bind = op.get_bind()
    location_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brand", sa.String(length=80), nullable=False),
        sa.Column("model", sa.String(length=160), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location_type", location_type_enum, nullable=False),
        sa.Column("location_number", sa.String(length=64), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"], unique=False)
    op.create_index(op.f("ix_products_brand"), "products", ["brand"], unique=False)
    op.create_index(op.f("ix_products_model"), "products", ["model"], unique=False)
    op.create_index(op.f("ix_products_location_type"), "products", ["location_type"], unique=False)
    op.create_index(op.f("ix_products_location_number"), "products", ["location_number"], unique=False)
    op.create_index(op.f("ix_products_created_by_user_id"), "products", ["created_by_user_id"], unique=False)

    op.create_table(
        "stock_adjustments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("adjusted_by_user_id", sa.Integer(), nullable=True),
        sa.Column("quantity_before", sa.Integer(), nullable=False),
        sa.Column("quantity_after", sa.Integer(), nullable=False),
        sa.Column("quantity_delta", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("adjusted_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["adjusted_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stock_adjustments_id"), "stock_adjustments", ["id"], unique=False)
    op.create_index(op.f("ix_stock_adjustments_product_id"), "stock_adjustments", ["product_id"], unique=False)
    op.create_index(
        op.f("ix_stock_adjustments_adjusted_by_user_id"),
        "stock_adjustments",
        ["adjusted_by_user_id"],
        unique=False,
    )
    op.create_index(op.f("ix_stock_adjustments_adjusted_at"), "stock_adjustments", ["adjusted_at"], unique=False)

    op.create_table(
        "bill_products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_name", sa.String(length=160), nullable=False),
        sa.Column("serial_number", sa.String(length=128), nullable=False),
        sa.Column("color", sa.String(length=60), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bill_products_id"), "bill_products", ["id"], unique=False)
    op.create_index(op.f("ix_bill_products_product_name"), "bill_products", ["product_name"], unique=False)
    op.create_index(op.f("ix_bill_products_serial_number"), "bill_products", ["serial_number"], unique=True)
    op.create_index(
        op.f("ix_bill_products_created_by_user_id"),
        "bill_products",
        ["created_by_user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_bill_products_created_by_user_id"), table_name="bill_products")
    op.drop_index(op.f("ix_bill_products_serial_number"), table_name="bill_products")
    op.drop_index(op.f("ix_bill_products_product_name"), table_name="bill_products")
    op.drop_index(op.f("ix_bill_products_id"), table_name="bill_products")
    op.drop_table("bill_products")

    op.drop_index(op.f("ix_stock_adjustments_adjusted_at"), table_name="stock_adjustments")
    op.drop_index(op.f("ix_stock_adjustments_adjusted_by_user_id"), table_name="stock_adjustments")
    op.drop_index(op.f("ix_stock_adjustments_product_id"), table_name="stock_adjustments")
    op.drop_index(op.f("ix_stock_adjustments_id"), table_name="stock_adjustments")
    op.drop_table("stock_adjustments")

    op.drop_index(op.f("ix_products_created_by_user_id"), table_name="products")
    op.drop_index(op.f("ix_products_location_number"), table_name="products")
    op.drop_index(op.f("ix_products_location_type"), table_name="products")
    op.drop_index(op.f("ix_products_model"), table_name="products")
    op.drop_index(op.f("ix_products_brand"), table_name="products")
    op.drop_index(op.f("ix_products_id"), table_name="products")
    op.drop_table("products")

    bind = op.get_bind()
    sa.Enum(name="locationtype").drop(bind, checkfirst=True)
