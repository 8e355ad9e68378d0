from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wardrobe.core.enums import ClothingStatus
from wardrobe.services.money import MAX_CENTS


def _blank_to_none(v: object) -> object:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def _normalize_status(v: object) -> object:
    # Older clients send lower-case statuses ("available").
    if isinstance(v, str):
        return v.strip().upper() or None
    return v


class ClothingItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    owner_name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    rental_price_cents: int = Field(ge=0, le=MAX_CENTS)
    status: ClothingStatus = ClothingStatus.AVAILABLE

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("owner_name", "description", mode="before")
    @classmethod
    def _normalize_optional_text(cls, v: object) -> object:
        return _blank_to_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: object) -> object:
        return _normalize_status(v) or ClothingStatus.AVAILABLE


class ClothingItemUpdate(BaseModel):
    """Partial update: only fields that were sent are applied (see `model_dump(exclude_unset=True)`)."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    owner_name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    rental_price_cents: int | None = Field(default=None, ge=0, le=MAX_CENTS)
    status: ClothingStatus | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("owner_name", "description", mode="before")
    @classmethod
    def _normalize_optional_text(cls, v: object) -> object:
        return _blank_to_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v: object) -> object:
        return _normalize_status(v)


class ClothesQuery(BaseModel):
    status: ClothingStatus | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v: object) -> object:
        return _normalize_status(v)


class ClothingItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    owner_name: str | None
    description: str | None
    rental_price_cents: int
    status: ClothingStatus
    image_path: str

    created_at: datetime
    updated_at: datetime

    # --- Enriched by endpoint, not from ORM ---
    image_url: str | None = None


class ClothingItemDetailOut(BaseModel):
    id: UUID
    name: str
    price_cents: int
    original_price_cents: int
    images: list[str]
    sizes: list[str]
    description: str
    sku: str


class MessageOut(BaseModel):
    message: str
