from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wardrobe.services.money import MAX_CENTS, MAX_QUANTITY


class RentalOrderLineCreate(BaseModel):
    clothing_item_id: UUID
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class RentalOrderCreate(BaseModel):
    customer_name: str = Field(min_length=1, max_length=200)
    lines: list[RentalOrderLineCreate] = Field(min_length=1)
    rent_date: datetime
    return_date: datetime
    is_paid: bool = False
    # Total the client displayed; reconciled against the server-side total.
    total_amount_cents: int | None = Field(default=None, ge=0, le=MAX_CENTS)

    @model_validator(mode="after")
    def _validate_dates(self) -> "RentalOrderCreate":
        if self.return_date <= self.rent_date:
            raise ValueError("return_date must be after rent_date")
        return self


class RentalOrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    position: int
    clothing_item_id: UUID | None
    item_name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int


class RentalOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_name: str
    identity_image_path: str | None
    rent_date: datetime
    return_date: datetime
    is_paid: bool
    total_amount_cents: int
    quoted_total_cents: int | None
    created_at: datetime
    updated_at: datetime
    lines: list[RentalOrderLineOut]

    # --- Enriched by endpoint, not from ORM ---
    identity_image_url: str | None = None
