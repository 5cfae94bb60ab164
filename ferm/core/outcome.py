"""Per-message processing outcomes for broker consumers."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Applied:
    """The message produced its effect."""

    request_id: str | None
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rejected:
    """The message was dropped.

    Attributes:
        request_id: Correlation key, if the payload got far enough to carry one
        reason: poison, validation, conflict, duplicate, undelivered or error
        error: Human-readable cause
    """

    request_id: str | None
    reason: str
    error: str


Outcome = Applied | Rejected
