"""Inventory store operations used around the garden."""

from collections import defaultdict

from sqlalchemy import select

from ferm.core.errors import ValidationError, positive_int
from ferm.core.growth import CropType
from ferm.infra.database import Database
from ferm.infra.logging import get_logger
from ferm.models import InventoryItem, ItemKind, ItemStatus

logger = get_logger(__name__)


class InventoryService:
    """Seeds and produce owned by one user."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def add_seed(self, user_id: int, crop_type: str) -> InventoryItem:
        """Put a new seed into the user's inventory.

        Raises:
            ValidationError: Unknown crop type
        """
        try:
            crop = CropType(crop_type)
        except ValueError as e:
            raise ValidationError(f"Unknown crop type: {crop_type}") from e

        async with self.db.transaction() as session:
            item = InventoryItem(
                user_id=positive_int(user_id, "user_id"),
                kind=ItemKind.SEED,
                crop_type=crop.value,
                status=ItemStatus.NEW,
            )
            session.add(item)
            await session.flush()
            await session.refresh(item)

        logger.info("Seed added", user_id=user_id, inventory_id=item.id, crop_type=crop.value)
        return item

    async def list_items(self, user_id: int) -> dict[ItemKind, list[InventoryItem]]:
        """All of the user's items grouped by kind, newest first."""
        async with self.db.transaction() as session:
            items = await session.scalars(
                select(InventoryItem)
                .where(InventoryItem.user_id == user_id)
                .order_by(InventoryItem.id.desc())
            )
            grouped: dict[ItemKind, list[InventoryItem]] = defaultdict(list)
            for item in items:
                grouped[ItemKind(item.kind)].append(item)

        return {kind: grouped.get(kind, []) for kind in ItemKind}

    async def wash(self, user_id: int, inventory_id: int) -> InventoryItem:
        """Turn a raw vegetable into a washed one.

        Raises:
            ValidationError: Bad id or the item is not the user's raw vegetable
        """
        inventory_id = positive_int(inventory_id, "inventory_id")

        async with self.db.transaction() as session:
            item = await session.scalar(
                select(InventoryItem)
                .where(InventoryItem.id == inventory_id, InventoryItem.user_id == user_id)
                .with_for_update()
            )
            if item is None or item.kind != ItemKind.RAW_VEG:
                raise ValidationError(f"Inventory item {inventory_id} is not a raw vegetable")

            item.kind = ItemKind.WASHED_VEG
            item.status = ItemStatus.WASHED

        logger.info("Vegetable washed", user_id=user_id, inventory_id=inventory_id)
        return item
