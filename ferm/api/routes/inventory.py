"""Inventory endpoints used by the garden screens."""

from fastapi import APIRouter

from ferm.api.deps import Runtime, UserId
from ferm.models import InventoryItem, ItemKind
from ferm.schemas.inventory import InventoryItemOut, InventoryResponse, WashResponse

router = APIRouter()


def _item_out(item: InventoryItem) -> InventoryItemOut:
    return InventoryItemOut(
        id=item.id,
        kind=item.kind,
        crop_type=item.crop_type,
        status=item.status,
        created_at=item.created_at,
    )


@router.get("", response_model=InventoryResponse)
async def list_inventory(runtime: Runtime, user_id: UserId) -> InventoryResponse:
    grouped = await runtime.inventory.list_items(user_id)
    return InventoryResponse(
        seeds=[_item_out(i) for i in grouped[ItemKind.SEED]],
        veg_raw=[_item_out(i) for i in grouped[ItemKind.RAW_VEG]],
        veg_washed=[_item_out(i) for i in grouped[ItemKind.WASHED_VEG]],
    )


@router.patch("/wash/{inventory_id}", response_model=WashResponse)
async def wash(inventory_id: str, runtime: Runtime, user_id: UserId) -> WashResponse:
    item = await runtime.inventory.wash(user_id, inventory_id)
    return WashResponse(item=_item_out(item))
