from __future__ import annotations

from enum import StrEnum


class ClothingStatus(StrEnum):
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"


class MediaCategory(StrEnum):
    GENERAL = "GENERAL"
    IDENTITY = "IDENTITY"
