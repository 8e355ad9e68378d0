"""initial schema: clothes, rental orders, audit log

Revision ID: 4b8e2c7d1a90
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "4b8e2c7d1a90"
down_revision = None
branch_labels = None
depends_on = None


clothing_status = sa.Enum("AVAILABLE", "RENTED", name="clothing_status")


def upgrade() -> None:
    op.create_table(
        "clothes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("owner_name", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rental_price_cents", sa.Integer(), nullable=False),
        sa.Column("status", clothing_status, nullable=False),
        sa.Column("image_path", sa.String(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_clothes_created_at"), "clothes", ["created_at"])

    op.create_table(
        "rental_orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("identity_image_path", sa.String(length=500), nullable=True),
        sa.Column("rent_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("quoted_total_cents", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_rental_orders_created_at"), "rental_orders", ["created_at"])

    op.create_table(
        "rental_order_lines",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "order_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("rental_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column(
            "clothing_item_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clothes.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("item_name", sa.String(length=200), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_rental_order_lines_quantity_positive"),
    )
    op.create_index(op.f("ix_rental_order_lines_order_id"), "rental_order_lines", ["order_id"])
    op.create_index(op.f("ix_rental_order_lines_clothing_item_id"), "rental_order_lines", ["clothing_item_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
    )
    op.create_index(op.f("ix_audit_logs_entity_id"), "audit_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_logs_entity_id"), table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index(op.f("ix_rental_order_lines_clothing_item_id"), table_name="rental_order_lines")
    op.drop_index(op.f("ix_rental_order_lines_order_id"), table_name="rental_order_lines")
    op.drop_table("rental_order_lines")
    op.drop_index(op.f("ix_rental_orders_created_at"), table_name="rental_orders")
    op.drop_table("rental_orders")
    op.drop_index(op.f("ix_clothes_created_at"), table_name="clothes")
    op.drop_table("clothes")
    clothing_status.drop(op.get_bind(), checkfirst=True)
