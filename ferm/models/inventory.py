"""Inventory model - discrete seeds and produce owned by a user."""

from enum import StrEnum

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ferm.models.base import Base, TimestampMixin


class ItemKind(StrEnum):
    SEED = "seed"
    RAW_VEG = "veg_raw"
    WASHED_VEG = "veg_washed"


class ItemStatus(StrEnum):
    NEW = "new"
    HARVESTED = "harvested"
    WASHED = "washed"


class InventoryItem(Base, TimestampMixin):
    """Single inventory entry.

    Seeds are deleted when planted, raw vegetables are created by harvest
    and turned into washed vegetables in place.
    """

    __tablename__ = "inventory"
    __table_args__ = (
        Index("ix_inventory_user_kind_type", "user_id", "kind", "crop_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    crop_type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ItemStatus.NEW)

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, kind='{self.kind}', crop_type='{self.crop_type}')>"
