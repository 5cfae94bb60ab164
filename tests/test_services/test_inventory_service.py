"""Tests for inventory operations."""

import pytest

from ferm.core.errors import ValidationError
from ferm.models import ItemKind, ItemStatus
from ferm.services.inventory_service import InventoryService

from conftest import add_item


@pytest.fixture
def inventory(db, users) -> InventoryService:
    return InventoryService(db)


class TestInventoryService:
    """Tests for InventoryService."""

    @pytest.mark.asyncio
    async def test_add_seed(self, inventory: InventoryService):
        item = await inventory.add_seed(1, "mango")

        assert item.id is not None
        assert item.kind == ItemKind.SEED
        assert item.status == ItemStatus.NEW
        assert item.created_at is not None

    @pytest.mark.asyncio
    async def test_add_unknown_seed(self, inventory: InventoryService):
        with pytest.raises(ValidationError):
            await inventory.add_seed(1, "banana")

    @pytest.mark.asyncio
    async def test_list_groups_by_kind(self, inventory: InventoryService, db):
        await inventory.add_seed(1, "carrot")
        await inventory.add_seed(1, "radish")
        await add_item(db, user_id=1, crop_type="cabbage", kind=ItemKind.RAW_VEG)
        await inventory.add_seed(2, "potato")

        grouped = await inventory.list_items(1)

        assert [i.crop_type for i in grouped[ItemKind.SEED]] == ["radish", "carrot"]
        assert [i.crop_type for i in grouped[ItemKind.RAW_VEG]] == ["cabbage"]
        assert grouped[ItemKind.WASHED_VEG] == []

    @pytest.mark.asyncio
    async def test_wash_raw_vegetable(self, inventory: InventoryService, db):
        veg_id = await add_item(db, user_id=1, crop_type="cabbage", kind=ItemKind.RAW_VEG)

        washed = await inventory.wash(1, veg_id)

        assert washed.kind == ItemKind.WASHED_VEG
        assert washed.status == ItemStatus.WASHED
        grouped = await inventory.list_items(1)
        assert [item.id for item in grouped[ItemKind.WASHED_VEG]] == [veg_id]
        assert grouped[ItemKind.RAW_VEG] == []

    @pytest.mark.asyncio
    async def test_wash_seed_rejected(self, inventory: InventoryService):
        seed = await inventory.add_seed(1, "carrot")

        with pytest.raises(ValidationError):
            await inventory.wash(1, seed.id)

    @pytest.mark.asyncio
    async def test_wash_other_users_item_rejected(self, inventory: InventoryService, db):
        veg_id = await add_item(db, user_id=2, crop_type="cabbage", kind=ItemKind.RAW_VEG)

        with pytest.raises(ValidationError):
            await inventory.wash(1, veg_id)
