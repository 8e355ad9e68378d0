from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wardrobe.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RentalOrder(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rental_orders"

    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    identity_image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    rent_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    return_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Server-computed from clothes prices; quoted_total_cents is what the client displayed, if it sent one.
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quoted_total_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    lines: Mapped[list["RentalOrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="RentalOrderLine.position",
    )


class RentalOrderLine(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "rental_order_lines"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_rental_order_lines_quantity_positive"),)

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rental_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # SET NULL: deleting a clothing item later must not touch past orders.
    clothing_item_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("clothes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[RentalOrder] = relationship(back_populates="lines")

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity
