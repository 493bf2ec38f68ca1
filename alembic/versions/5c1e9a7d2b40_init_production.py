"""init production

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-18 09:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATES = "'draft', 'planned', 'in_production', 'issue', 'produced', 'invoiced', 'shipped'"
STAGES = "'planning', 'cutting', 'services', 'sewing', 'finishing', 'produced'"
QTY_NONNEG = "qty_ordered >= 0 AND qty_to_produce >= 0 AND qty_produced >= 0 AND qty_defect >= 0"


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    # ===== Sales side =====
    op.create_table(
        "sales_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("date_order", sa.Date(), nullable=True),
        sa.Column("date_delivery_requested", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_orders_code"), "sales_orders", ["code"], unique=True)

    op.create_table(
        "sales_order_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sales_order_id", sa.Integer(), nullable=False),
        sa.Column("article_ref", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("size", sa.String(), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.CheckConstraint("qty >= 0", name="ck_sol_qty_nonneg"),
        sa.ForeignKeyConstraint(["sales_order_id"], ["sales_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_order_lines_sales_order_id"), "sales_order_lines", ["sales_order_id"], unique=False)

    # ===== Production side =====
    op.create_table(
        "production_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("sale_ref", sa.String(), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("service_current", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("state_before_issue", sa.String(), nullable=True),
        sa.Column("date_order", sa.Date(), nullable=True),
        sa.Column("date_delivery_requested", sa.Date(), nullable=True),
        sa.Column("date_start_plan", sa.Date(), nullable=True),
        sa.Column("date_end_estimated", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(f"state IN ({STATES})", name="ck_po_state"),
        sa.CheckConstraint(f"service_current IN ({STAGES})", name="ck_po_service"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_production_orders_code"), "production_orders", ["code"], unique=True)
    op.create_index(op.f("ix_production_orders_sale_ref"), "production_orders", ["sale_ref"], unique=False)
    op.create_index("ix_production_orders_state", "production_orders", ["state"], unique=False)

    op.create_table(
        "production_order_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("article_ref", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("qty_ordered", sa.Integer(), nullable=False),
        sa.Column("qty_to_produce", sa.Integer(), nullable=False),
        sa.Column("qty_produced", sa.Integer(), nullable=False),
        sa.Column("qty_defect", sa.Integer(), nullable=False),
        sa.Column("service_current", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("seq >= 1", name="ck_pol_seq_positive"),
        sa.CheckConstraint(QTY_NONNEG, name="ck_pol_qty_nonneg"),
        sa.CheckConstraint(f"state IN ({STATES})", name="ck_pol_state"),
        sa.CheckConstraint(f"service_current IN ({STAGES})", name="ck_pol_service"),
        sa.ForeignKeyConstraint(["production_order_id"], ["production_orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("production_order_id", "seq", name="uq_pol_order_seq"),
        sa.UniqueConstraint("production_order_id", "code", name="uq_pol_order_code"),
    )
    op.create_index(
        op.f("ix_production_order_lines_production_order_id"),
        "production_order_lines", ["production_order_id"], unique=False,
    )
    op.create_index("ix_pol_state", "production_order_lines", ["state"], unique=False)

    op.create_table(
        "production_order_line_sizes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("production_order_line_id", sa.Integer(), nullable=False),
        sa.Column("size", sa.String(), nullable=False),
        sa.Column("qty_ordered", sa.Integer(), nullable=False),
        sa.Column("qty_to_produce", sa.Integer(), nullable=False),
        sa.Column("qty_produced", sa.Integer(), nullable=False),
        sa.Column("qty_defect", sa.Integer(), nullable=False),
        sa.CheckConstraint(QTY_NONNEG, name="ck_pols_qty_nonneg"),
        sa.ForeignKeyConstraint(["production_order_line_id"], ["production_order_lines.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("production_order_line_id", "size", name="uq_pols_line_size"),
    )
    op.create_index(
        op.f("ix_production_order_line_sizes_production_order_line_id"),
        "production_order_line_sizes", ["production_order_line_id"], unique=False,
    )

    op.create_table(
        "production_anomalies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=False),
        sa.Column("production_order_line_id", sa.Integer(), nullable=True),
        sa.Column("service", sa.String(), nullable=False),
        sa.Column("severity", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_blocking", sa.Boolean(), nullable=False),
        sa.Column("resolved", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("severity IN ('low', 'medium', 'high')", name="ck_pa_severity"),
        sa.ForeignKeyConstraint(["production_order_id"], ["production_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["production_order_line_id"], ["production_order_lines.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_production_anomalies_production_order_id"),
        "production_anomalies", ["production_order_id"], unique=False,
    )
    op.create_index(
        op.f("ix_production_anomalies_production_order_line_id"),
        "production_anomalies", ["production_order_line_id"], unique=False,
    )
    op.create_index("ix_pa_open_blocking", "production_anomalies", ["is_blocking", "resolved"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_pa_open_blocking", table_name="production_anomalies")
    op.drop_index(op.f("ix_production_anomalies_production_order_line_id"), table_name="production_anomalies")
    op.drop_index(op.f("ix_production_anomalies_production_order_id"), table_name="production_anomalies")
    op.drop_table("production_anomalies")

    op.drop_index(
        op.f("ix_production_order_line_sizes_production_order_line_id"),
        table_name="production_order_line_sizes",
    )
    op.drop_table("production_order_line_sizes")

    op.drop_index("ix_pol_state", table_name="production_order_lines")
    op.drop_index(op.f("ix_production_order_lines_production_order_id"), table_name="production_order_lines")
    op.drop_table("production_order_lines")

    op.drop_index("ix_production_orders_state", table_name="production_orders")
    op.drop_index(op.f("ix_production_orders_sale_ref"), table_name="production_orders")
    op.drop_index(op.f("ix_production_orders_code"), table_name="production_orders")
    op.drop_table("production_orders")

    op.drop_index(op.f("ix_sales_order_lines_sales_order_id"), table_name="sales_order_lines")
    op.drop_table("sales_order_lines")

    op.drop_index(op.f("ix_sales_orders_code"), table_name="sales_orders")
    op.drop_table("sales_orders")
