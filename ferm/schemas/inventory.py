"""Inventory response schemas."""

from datetime import datetime

from pydantic import Field

from ferm.schemas.garden import CamelModel


class InventoryItemOut(CamelModel):
    id: int
    kind: str
    crop_type: str = Field(serialization_alias="type")
    status: str
    created_at: datetime | None = None


class InventoryResponse(CamelModel):
    seeds: list[InventoryItemOut] = Field(default_factory=list)
    veg_raw: list[InventoryItemOut] = Field(default_factory=list)
    veg_washed: list[InventoryItemOut] = Field(default_factory=list)


class WashResponse(CamelModel):
    ok: bool = True
    item: InventoryItemOut
