"""Core module - errors, growth rules and consumer outcomes."""

from ferm.core.errors import (
    ConflictError,
    FermError,
    PoisonMessageError,
    ServiceUnavailableError,
    TransientInfraError,
    ValidationError,
)
from ferm.core.growth import CropType, has_matured, utcnow
from ferm.core.outcome import Applied, Outcome, Rejected

__all__ = [
    "ConflictError",
    "FermError",
    "PoisonMessageError",
    "ServiceUnavailableError",
    "TransientInfraError",
    "ValidationError",
    "CropType",
    "has_matured",
    "utcnow",
    "Applied",
    "Outcome",
    "Rejected",
]
