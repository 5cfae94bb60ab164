"""Garden endpoints.

Planting is asynchronous: the endpoint answers 202 with a request id and the
plot changes once the planting consumer applies the command. Harvesting and
uprooting are applied synchronously.
"""

from fastapi import APIRouter, status

from ferm.api.deps import AdminOnly, Runtime, UserId, UserRole
from ferm.core.errors import ValidationError
from ferm.infra.logging import get_logger
from ferm.schemas.garden import (
    HarvestRequest,
    HarvestResponse,
    PlantAccepted,
    PlantRequest,
    PlotsResponse,
    UprootResponse,
)

router = APIRouter()
logger = get_logger(__name__)


def _required(value: object) -> object:
    if value is None or value == "":
        raise ValidationError("Required field is missing")
    return value


@router.get("/plots", response_model=PlotsResponse)
async def list_plots(runtime: Runtime, user_id: UserId, role: UserRole) -> PlotsResponse:
    """All plots of the caller, with derived maturity."""
    plots = await runtime.plots.list_plots(user_id)
    return PlotsResponse(
        plots=plots,
        growth_minutes=runtime.settings.growth_minutes,
        can_uproot=role == "admin",
    )


@router.post(
    "/plant",
    response_model=PlantAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue planting a seed on a plot",
)
async def plant(request: PlantRequest, runtime: Runtime, user_id: UserId) -> PlantAccepted:
    logger.info(
        "Plant request received",
        user_id=user_id,
        slot=request.slot,
        inventory_id=request.inventory_id,
    )
    return await runtime.plant_producer.submit(
        user_id,
        _required(request.slot),
        _required(request.inventory_id),
    )


@router.post("/harvest", response_model=HarvestResponse)
async def harvest(request: HarvestRequest, runtime: Runtime, user_id: UserId) -> HarvestResponse:
    result = await runtime.plots.harvest(user_id, _required(request.slot))
    return HarvestResponse(
        slot=result.slot,
        crop_type=result.crop_type,
        inventory_id=result.inventory_id,
    )


@router.delete("/uproot/{slot}", response_model=UprootResponse)
async def uproot(slot: str, runtime: Runtime, user_id: UserId, _: AdminOnly) -> UprootResponse:
    crop_type = await runtime.plots.uproot(user_id, slot)
    return UprootResponse(slot=int(slot), crop_type=crop_type)
