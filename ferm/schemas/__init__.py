"""Pydantic schemas for request/response validation and broker messages."""

from ferm.schemas.common import ErrorResponse, HealthResponse
from ferm.schemas.garden import (
    DrainResponse,
    HarvestRequest,
    HarvestResponse,
    PlantAccepted,
    PlantRequest,
    PlotSnapshot,
    PlotsResponse,
    UprootResponse,
)
from ferm.schemas.inventory import InventoryItemOut, InventoryResponse, WashResponse
from ferm.schemas.messages import BrokerMessage, MaturityNotification, PlantCommand

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "DrainResponse",
    "HarvestRequest",
    "HarvestResponse",
    "PlantAccepted",
    "PlantRequest",
    "PlotSnapshot",
    "PlotsResponse",
    "UprootResponse",
    "InventoryItemOut",
    "InventoryResponse",
    "WashResponse",
    "BrokerMessage",
    "MaturityNotification",
    "PlantCommand",
]
