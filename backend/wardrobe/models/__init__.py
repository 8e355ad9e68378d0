from wardrobe.models.audit_log import AuditLog
from wardrobe.models.clothing_item import ClothingItem
from wardrobe.models.rental_order import RentalOrder, RentalOrderLine

__all__ = [
    "AuditLog",
    "ClothingItem",
    "RentalOrder",
    "RentalOrderLine",
]
