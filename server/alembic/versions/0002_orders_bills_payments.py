"""sales orders, purchase invoices and payments

Revision ID: 0002_orders_bills_payments
Revises: 0001_initial
Create Date: 2026-10-17 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "0002_orders_bills_payments"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 2), nullable=False, server_default="0", **kwargs)


def _line_columns(parent_column: str, parent_table: str) -> list:
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(parent_column, sa.Integer(), sa.ForeignKey(f"{parent_table}.id"), nullable=False),
        sa.Column("line_no", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id")),
        sa.Column("description", sa.Text()),
        sa.Column("quantity", sa.Numeric(14, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        _money("discount_amount"),
        sa.Column("tax_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        _money("tax_amount"),
        _money("line_total"),
    ]


def upgrade() -> None:
    op.create_table(
        "sales_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_no", sa.String(length=20), nullable=False, unique=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("expected_delivery_date", sa.Date()),
        sa.Column("payment_terms", sa.String(length=20), nullable=False, server_default="CASH"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        _money("subtotal"),
        _money("total_discount"),
        _money("total_tax"),
        _money("grand_total"),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("sales_invoices.id")),
        sa.Column("notes", sa.Text()),
        sa.Column("confirmed_at", sa.DateTime()),
        sa.Column("invoiced_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_sales_orders_status", "sales_orders", ["status"], unique=False)
    op.create_table("sales_order_lines", *_line_columns("sales_order_id", "sales_orders"))

    op.create_table(
        "purchase_invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_no", sa.String(length=20), nullable=False, unique=True),
        sa.Column("vendor_invoice_number", sa.String(length=50)),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("purchase_order_id", sa.Integer(), sa.ForeignKey("purchase_orders.id")),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        _money("subtotal"),
        _money("total_discount"),
        _money("total_tax"),
        _money("grand_total"),
        _money("amount_paid"),
        _money("amount_due"),
        sa.Column("debit_account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        sa.Column("journal_entry_id", sa.Integer(), sa.ForeignKey("journal_entries.id")),
        sa.Column("notes", sa.Text()),
        sa.Column("posted_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_purchase_invoices_status", "purchase_invoices", ["status"], unique=False)
    op.create_table("purchase_invoice_lines", *_line_columns("purchase_invoice_id", "purchase_invoices"))

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("payment_no", sa.String(length=20), nullable=False, unique=True),
        sa.Column("payment_type", sa.String(length=10), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id")),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id")),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=30), nullable=False, server_default="CASH"),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("reference", sa.String(length=100)),
        sa.Column("sales_invoice_id", sa.Integer(), sa.ForeignKey("sales_invoices.id")),
        sa.Column("purchase_invoice_id", sa.Integer(), sa.ForeignKey("purchase_invoices.id")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("journal_entry_id", sa.Integer(), sa.ForeignKey("journal_entries.id")),
        sa.Column("notes", sa.Text()),
        sa.Column("posted_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_payments_payment_date", table_name="payments")
    op.drop_table("payments")
    op.drop_table("purchase_invoice_lines")
    op.drop_index("ix_purchase_invoices_status", table_name="purchase_invoices")
    op.drop_table("purchase_invoices")
    op.drop_table("sales_order_lines")
    op.drop_index("ix_sales_orders_status", table_name="sales_orders")
    op.drop_table("sales_orders")
