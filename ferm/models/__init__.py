"""SQLAlchemy models for the garden pipeline."""

from ferm.models.base import Base, TimestampMixin
from ferm.models.inventory import InventoryItem, ItemKind, ItemStatus
from ferm.models.plot import Plot
from ferm.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "InventoryItem",
    "ItemKind",
    "ItemStatus",
    "Plot",
    "User",
]
