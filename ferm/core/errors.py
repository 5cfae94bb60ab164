"""Error taxonomy for the garden pipeline.

Each error carries the HTTP status the API layer answers with. Validation
and conflict errors are expected outcomes of racing or stale requests;
infrastructure errors surface as 503.
"""

from fastapi import status


class FermError(Exception):
    """Base class for all domain and infrastructure errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FermError):
    """Malformed or out-of-range input, correctable by the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"


class ConflictError(FermError):
    """A plot state machine precondition was violated."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ServiceUnavailableError(FermError):
    """The broker or another dependency is disabled or down."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"


class TransientInfraError(ServiceUnavailableError):
    """Database or broker connection failed after bounded retries."""

    default_message = "Infrastructure connection failed"


class PoisonMessageError(FermError):
    """A queued message could not be parsed or is semantically invalid."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Unprocessable message"


def positive_int(value: object, field: str) -> int:
    """Coerce ``value`` to a positive integer or raise ValidationError.

    Accepts ints and integral strings; rejects bools, floats with a
    fractional part and anything non-numeric.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and value.strip().lstrip("+").isdecimal():
        try:
            parsed = int(value.strip())
        except ValueError as e:
            raise ValidationError(f"{field} must be a positive integer") from e
    else:
        raise ValidationError(f"{field} must be a positive integer")

    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return parsed
