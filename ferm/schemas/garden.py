"""Garden request and response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes to camelCase, accepts either casing on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlantRequest(CamelModel):
    """Body of POST /garden/plant.

    Values are range-checked by the producer, so malformed numbers surface
    as the domain ValidationError rather than a 422.
    """

    slot: int | str | None = Field(default=None, description="Plot slot number")
    inventory_id: int | str | None = Field(default=None, description="Seed inventory item id")


class PlantAccepted(CamelModel):
    """Planting was queued, not yet applied."""

    accepted: bool = True
    request_id: UUID


class HarvestRequest(CamelModel):
    slot: int | str | None = Field(default=None, description="Plot slot number")


class HarvestResponse(CamelModel):
    ok: bool = True
    slot: int
    crop_type: str
    inventory_id: int


class UprootResponse(CamelModel):
    ok: bool = True
    slot: int
    crop_type: str


class PlotSnapshot(CamelModel):
    """Read model of one plot; ``matured`` is derived, never stored."""

    slot: int
    crop_type: str | None
    planted_at: datetime | None
    matured: bool
    harvested: bool


class PlotsResponse(CamelModel):
    plots: list[PlotSnapshot]
    growth_minutes: int
    can_uproot: bool = False


class DrainResponse(CamelModel):
    processed: int
