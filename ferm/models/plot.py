"""Plot model - one growable slot of a user's garden."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ferm.models.base import Base


class Plot(Base):
    """Per-user, per-slot garden plot.

    Identity is (user_id, slot). Rows are created once per slot and never
    deleted; harvesting and uprooting reset them to Empty.

    States:
        Empty:    crop_type is None
        Growing:  crop_type set, harvested False, not yet matured
        Matured:  crop_type set, harvested False, growth elapsed (derived)
    """

    __tablename__ = "plots"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    slot: Mapped[int] = mapped_column(Integer, primary_key=True)
    crop_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    planted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    harvested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    matured_notified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    @property
    def is_occupied(self) -> bool:
        """A crop is in the ground (Growing or Matured)."""
        return self.crop_type is not None and not self.harvested

    def __repr__(self) -> str:
        return (
            f"<Plot(user_id={self.user_id}, slot={self.slot}, "
            f"crop_type='{self.crop_type}')>"
        )
