"""create_stock_ledger_tables

Revision ID: 5b1f0c2a9d41
Revises:
Create Date: 2026-10-19 09:12:44.518203
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from app.models.stock_view import CURRENT_STOCK_SELECT


# revision identifiers, used by Alembic.
revision: str = '5b1f0c2a9d41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # USERS
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(150), nullable=True),
        sa.Column("full_name", sa.String(150), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # PRODUCTS
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("unit_type", sa.String(10), nullable=False),
        sa.Column("units_per_package", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("unit_type IN ('crate', 'piece')", name="ck_products_unit_type_valid"),
        sa.CheckConstraint("units_per_package > 0", name="ck_units_per_package_positive"),
    )
    op.create_index("ix_products_id", "products", ["id"])
    op.create_index("ix_products_is_active", "products", ["is_active"])
    op.create_index("uq_products_name_lower", "products", [sa.text("lower(name)")], unique=True)

    # MESSES
    op.create_table(
        "messes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(150), nullable=True),
        sa.Column("contact_person", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_messes_id", "messes", ["id"])
    op.create_index("ix_messes_name", "messes", ["name"], unique=True)

    # ATTENDANTS
    op.create_table(
        "attendants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("mess_id", sa.Integer(), sa.ForeignKey("messes.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_attendants_id", "attendants", ["id"])
    op.create_index("ix_attendants_mess_id", "attendants", ["mess_id"])

    # STOCK RECEIPTS
    op.create_table(
        "stock_receipts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchase_price_per_unit", sa.Numeric(10, 2), nullable=True),
        sa.Column("unit_type", sa.String(10), nullable=False),
        sa.Column("supplier_name", sa.String(150), nullable=True),
        sa.Column("supplier_contact", sa.String(100), nullable=True),
        sa.Column("date_added", sa.Date(), server_default=sa.func.current_date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_receipt_quantity_positive"),
        sa.CheckConstraint(
            "purchase_price_per_unit IS NULL OR purchase_price_per_unit >= 0",
            name="ck_receipt_price_non_negative",
        ),
    )
    op.create_index("ix_stock_receipts_id", "stock_receipts", ["id"])
    op.create_index("ix_stock_receipts_product_id", "stock_receipts", ["product_id"])
    op.create_index("ix_stock_receipts_product_date", "stock_receipts", ["product_id", "date_added"])

    # DISTRIBUTIONS
    op.create_table(
        "distributions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("mess_id", sa.Integer(), sa.ForeignKey("messes.id"), nullable=False),
        sa.Column("attendant_id", sa.Integer(), sa.ForeignKey("attendants.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_per_unit", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_type", sa.String(10), nullable=False),
        sa.Column("total_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("distribution_date", sa.Date(), server_default=sa.func.current_date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_distribution_quantity_positive"),
        sa.CheckConstraint("price_per_unit > 0", name="ck_distribution_price_positive"),
    )
    op.create_index("ix_distributions_id", "distributions", ["id"])
    op.create_index("ix_distributions_product_id", "distributions", ["product_id"])
    op.create_index("ix_distributions_mess_id", "distributions", ["mess_id"])
    op.create_index("ix_distributions_distribution_date", "distributions", ["distribution_date"])
    op.create_index("ix_distributions_mess_date", "distributions", ["mess_id", "distribution_date"])

    # PAYMENTS
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("mess_id", sa.Integer(), sa.ForeignKey("messes.id"), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), server_default=sa.func.current_date(), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount_paid > 0", name="ck_amount_paid_positive"),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_mess_id", "payments", ["mess_id"])

    # CURRENT STOCK VIEW
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE OR REPLACE VIEW v_current_stock AS " + CURRENT_STOCK_SELECT)
    else:
        op.execute("CREATE VIEW IF NOT EXISTS v_current_stock AS " + CURRENT_STOCK_SELECT)


def downgrade() -> None:
    """Downgrade schema."""

    op.execute("DROP VIEW IF EXISTS v_current_stock")

    op.drop_table("payments")
    op.drop_table("distributions")
    op.drop_table("stock_receipts")
    op.drop_table("attendants")
    op.drop_table("messes")
    op.drop_index("uq_products_name_lower", table_name="products")
    op.drop_table("products")
    op.drop_table("users")
