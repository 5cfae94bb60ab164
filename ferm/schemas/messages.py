"""Broker message schemas and their parsers.

Messages are JSON objects in camelCase keyed by ``requestId``. Parsing
never lets a decoding or shape error escape as anything other than
PoisonMessageError, so consumers can drop the message and move on.
"""

import json
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ferm.core.errors import PoisonMessageError

M = TypeVar("M", bound="BrokerMessage")


class BrokerMessage(BaseModel):
    """Immutable message with a correlation key."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    request_id: UUID = Field(default_factory=uuid4)
    created_at: datetime | None = None

    @property
    def key(self) -> str:
        return str(self.request_id)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def parse(cls: type[M], key: bytes | None, value: bytes | None) -> M:
        """Decode a raw broker record.

        The record key stands in for ``requestId`` when the payload lacks one.

        Raises:
            PoisonMessageError: If the value is empty, not JSON, or has the wrong shape
        """
        if not value:
            raise PoisonMessageError("Message has no payload")

        try:
            payload = json.loads(value.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PoisonMessageError(f"Message is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise PoisonMessageError("Message payload must be a JSON object")

        if not payload.get("requestId") and key:
            payload["requestId"] = key.decode("utf-8", errors="replace")

        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise PoisonMessageError(f"Invalid {cls.__name__} fields: {fields}") from e


class PlantCommand(BrokerMessage):
    """Instruction to plant a seed from the user's inventory on a slot."""

    user_id: PositiveInt
    slot: PositiveInt
    inventory_id: PositiveInt


class MaturityNotification(BrokerMessage):
    """Event asking for a "your crop is ready" email."""

    user_id: PositiveInt
    slot: PositiveInt
    crop_type: str
    planted_at: datetime
    email: str = Field(min_length=3)
