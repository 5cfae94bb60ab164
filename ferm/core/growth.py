"""Crop growth rules and the clock they are evaluated against."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import StrEnum

Clock = Callable[[], datetime]


class CropType(StrEnum):
    """Seed and produce types."""

    RADISH = "radish"
    CARROT = "carrot"
    CABBAGE = "cabbage"
    MANGO = "mango"
    POTATO = "potato"
    EGGPLANT = "eggplant"

    @property
    def is_advanced(self) -> bool:
        return self in ADVANCED_CROPS


BASE_CROPS = frozenset({CropType.RADISH, CropType.CARROT, CropType.CABBAGE})
ADVANCED_CROPS = frozenset({CropType.MANGO, CropType.POTATO, CropType.EGGPLANT})


def utcnow() -> datetime:
    """Default clock: timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def has_matured(
    planted_at: datetime | None,
    now: datetime,
    growth: timedelta,
) -> bool:
    """Whether a crop planted at ``planted_at`` is ready at ``now``."""
    if planted_at is None:
        return False
    return as_utc(now) - as_utc(planted_at) >= growth
