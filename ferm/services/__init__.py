"""Business logic services."""

from ferm.services.garden_service import HarvestResult, MaturedPlot, PlantResult, PlotService
from ferm.services.inventory_service import InventoryService
from ferm.services.maturity_notifier import (
    DirectDelivery,
    MaturityDelivery,
    MaturityNotificationConsumer,
    MaturityNotificationProducer,
    QueuedDelivery,
)
from ferm.services.maturity_scanner import MaturityScanner, ScanReport
from ferm.services.plant_consumer import PlantCommandConsumer
from ferm.services.plant_producer import PlantCommandProducer
from ferm.services.runtime import GardenRuntime

__all__ = [
    "HarvestResult",
    "MaturedPlot",
    "PlantResult",
    "PlotService",
    "InventoryService",
    "DirectDelivery",
    "MaturityDelivery",
    "MaturityNotificationConsumer",
    "MaturityNotificationProducer",
    "QueuedDelivery",
    "MaturityScanner",
    "ScanReport",
    "PlantCommandConsumer",
    "PlantCommandProducer",
    "GardenRuntime",
]
