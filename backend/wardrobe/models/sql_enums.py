from __future__ import annotations

from sqlalchemy import Enum

from wardrobe.core.enums import ClothingStatus

clothing_status_enum = Enum(ClothingStatus, name="clothing_status")
