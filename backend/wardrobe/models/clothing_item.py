from __future__ import annotations

import uuid

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wardrobe.core.enums import ClothingStatus
from wardrobe.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from wardrobe.models.sql_enums import clothing_status_enum


def clothing_sku_from_id(id_: uuid.UUID) -> str:
    # Display SKU shown on the product detail page, e.g. SP3f2504e0-4f89-11d3-9a0c-0305e82c3301
    return f"SP{id_}"


class ClothingItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "clothes"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    rental_price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ClothingStatus] = mapped_column(
        clothing_status_enum, nullable=False, default=ClothingStatus.AVAILABLE
    )

    # Relative path under APP_STORAGE_DIR, e.g. /uploads/<uuid>.jpg
    image_path: Mapped[str] = mapped_column(String(500), nullable=False)

    @property
    def sku(self) -> str:
        return clothing_sku_from_id(self.id)

    @property
    def original_price_cents(self) -> int:
        # Display-only "was" price on the detail page.
        return self.rental_price_cents * 2
