"""Plot state machine.

Every transition runs in one transaction that row-locks the plot (and, when
planting, the seed) so two concurrent requests cannot plant or harvest the
same slot twice. Maturity is derived from ``planted_at`` and the growth
duration; it is never stored.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ferm.config import Settings
from ferm.core.errors import ConflictError, ValidationError, positive_int
from ferm.core.growth import Clock, as_utc, has_matured, utcnow
from ferm.infra.database import Database
from ferm.infra.logging import get_logger
from ferm.models import InventoryItem, ItemKind, ItemStatus, Plot, User
from ferm.schemas.garden import PlotSnapshot

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlantResult:
    slot: int
    inventory_id: int
    crop_type: str


@dataclass(frozen=True)
class HarvestResult:
    slot: int
    crop_type: str
    inventory_id: int


@dataclass(frozen=True)
class MaturedPlot:
    """Scanner hit: a matured, not yet notified plot and its owner's address."""

    user_id: int
    slot: int
    crop_type: str
    planted_at: datetime
    email: str


class PlotService:
    """Plot store operations and state transitions."""

    def __init__(
        self,
        db: Database,
        *,
        growth: timedelta,
        slots: int = 6,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.growth = growth
        self.slots = slots
        self.clock = clock

    @classmethod
    def from_settings(cls, db: Database, settings: Settings, clock: Clock = utcnow) -> "PlotService":
        return cls(
            db,
            growth=timedelta(minutes=settings.growth_minutes),
            slots=settings.garden_slots,
            clock=clock,
        )

    def has_matured(self, planted_at: datetime | None, now: datetime | None = None) -> bool:
        return has_matured(planted_at, now or self.clock(), self.growth)

    def snapshot(self, plot: Plot, now: datetime | None = None) -> PlotSnapshot:
        return PlotSnapshot(
            slot=plot.slot,
            crop_type=None if plot.harvested else plot.crop_type,
            planted_at=as_utc(plot.planted_at) if plot.planted_at else None,
            matured=self.has_matured(plot.planted_at, now) and not plot.harvested,
            harvested=plot.harvested,
        )

    async def ensure_plots_initialized(self, user_id: int) -> list[Plot]:
        """Create any missing Empty slots for the user and return all plots."""
        user_id = positive_int(user_id, "user_id")

        try:
            async with self.db.transaction() as session:
                plots = list(
                    await session.scalars(
                        select(Plot).where(Plot.user_id == user_id).order_by(Plot.slot)
                    )
                )
                existing = {plot.slot for plot in plots}
                missing = [
                    Plot(user_id=user_id, slot=slot, harvested=False, matured_notified=False)
                    for slot in range(1, self.slots + 1)
                    if slot not in existing
                ]
                if not missing:
                    return plots

                session.add_all(missing)
                logger.info("Plots initialized", user_id=user_id, created=len(missing))
                plots.extend(missing)
                return sorted(plots, key=lambda p: p.slot)

        except IntegrityError:
            # Another request created the slots first
            logger.debug("Plots initialized concurrently", user_id=user_id)

        async with self.db.transaction() as session:
            return list(
                await session.scalars(
                    select(Plot).where(Plot.user_id == user_id).order_by(Plot.slot)
                )
            )

    async def list_plots(self, user_id: int) -> list[PlotSnapshot]:
        plots = await self.ensure_plots_initialized(user_id)
        now = self.clock()
        return [self.snapshot(plot, now) for plot in plots]

    async def get_plot(self, user_id: int, slot: int) -> Plot | None:
        async with self.db.transaction() as session:
            return await session.get(Plot, (user_id, slot))

    async def plant(self, user_id: int, slot: int, inventory_id: int) -> PlantResult:
        """Empty -> Growing.

        Raises:
            ValidationError: Bad ids, unknown plot, or the item is not the user's seed
            ConflictError: The plot already has a crop in the ground
        """
        user_id = positive_int(user_id, "user_id")
        slot = positive_int(slot, "slot")
        inventory_id = positive_int(inventory_id, "inventory_id")

        async with self.db.transaction() as session:
            plot = await session.scalar(
                select(Plot)
                .where(Plot.user_id == user_id, Plot.slot == slot)
                .with_for_update()
            )
            if plot is None:
                raise ValidationError(f"Plot {slot} does not exist")

            if plot.is_occupied:
                raise ConflictError(f"Plot {slot} is already occupied")

            seed = await session.scalar(
                select(InventoryItem)
                .where(InventoryItem.id == inventory_id, InventoryItem.user_id == user_id)
                .with_for_update()
            )
            if seed is None or seed.kind != ItemKind.SEED:
                raise ValidationError(f"Inventory item {inventory_id} is not a seed")

            crop_type = seed.crop_type
            await session.delete(seed)

            plot.crop_type = crop_type
            plot.planted_at = self.clock()
            plot.harvested = False
            plot.matured_notified = False

        logger.info(
            "Seed planted",
            user_id=user_id,
            slot=slot,
            inventory_id=inventory_id,
            crop_type=crop_type,
        )
        return PlantResult(slot=slot, inventory_id=inventory_id, crop_type=crop_type)

    async def harvest(self, user_id: int, slot: int) -> HarvestResult:
        """Matured -> Empty, producing one raw vegetable.

        Raises:
            ValidationError: Bad slot number
            ConflictError: Nothing planted, already harvested, or not matured yet
        """
        user_id = positive_int(user_id, "user_id")
        slot = positive_int(slot, "slot")

        async with self.db.transaction() as session:
            plot = await session.scalar(
                select(Plot)
                .where(Plot.user_id == user_id, Plot.slot == slot)
                .with_for_update()
            )
            if (
                plot is None
                or plot.crop_type is None
                or plot.harvested
                or not self.has_matured(plot.planted_at)
            ):
                raise ConflictError(f"Crop on plot {slot} is not ready for harvest")

            crop_type = plot.crop_type
            plot.harvested = True
            plot.crop_type = None
            plot.planted_at = None

            produce = InventoryItem(
                user_id=user_id,
                kind=ItemKind.RAW_VEG,
                crop_type=crop_type,
                status=ItemStatus.HARVESTED,
            )
            session.add(produce)
            await session.flush()
            inventory_id = produce.id

        logger.info(
            "Crop harvested",
            user_id=user_id,
            slot=slot,
            crop_type=crop_type,
            inventory_id=inventory_id,
        )
        return HarvestResult(slot=slot, crop_type=crop_type, inventory_id=inventory_id)

    async def uproot(self, user_id: int, slot: int) -> str:
        """Growing/Matured -> Empty, discarding the crop.

        Returns:
            The crop type that was removed

        Raises:
            ValidationError: Bad slot number or nothing growing on the plot
        """
        user_id = positive_int(user_id, "user_id")
        slot = positive_int(slot, "slot")

        async with self.db.transaction() as session:
            plot = await session.scalar(
                select(Plot)
                .where(Plot.user_id == user_id, Plot.slot == slot)
                .with_for_update()
            )
            if plot is None or not plot.is_occupied:
                raise ValidationError(f"Nothing to uproot on plot {slot}")

            crop_type = plot.crop_type
            plot.harvested = False
            plot.crop_type = None
            plot.planted_at = None

        logger.info("Plot uprooted", user_id=user_id, slot=slot, crop_type=crop_type)
        return crop_type

    async def find_matured_unnotified(self, now: datetime | None = None) -> list[MaturedPlot]:
        """Plots whose growth elapsed and whose owner has not been told yet."""
        cutoff = (now or self.clock()) - self.growth

        stmt = (
            select(Plot.user_id, Plot.slot, Plot.crop_type, Plot.planted_at, User.email)
            .join(User, User.id == Plot.user_id)
            .where(
                Plot.harvested.is_(False),
                Plot.crop_type.is_not(None),
                Plot.planted_at.is_not(None),
                Plot.matured_notified.is_(False),
                Plot.planted_at <= cutoff,
            )
            .order_by(Plot.user_id, Plot.slot)
        )

        async with self.db.transaction() as session:
            rows = (await session.execute(stmt)).all()

        return [
            MaturedPlot(
                user_id=row.user_id,
                slot=row.slot,
                crop_type=row.crop_type,
                planted_at=row.planted_at,
                email=row.email,
            )
            for row in rows
        ]

    @staticmethod
    def _holds_crop(plot: Plot | None, crop_type: str, planted_at: datetime | None) -> bool:
        """Whether ``plot`` still carries the crop planted at ``planted_at``."""
        if plot is None or plot.crop_type != crop_type or plot.harvested:
            return False
        if planted_at is None:
            return True
        return plot.planted_at is not None and as_utc(plot.planted_at) == as_utc(planted_at)

    async def mark_notified(
        self,
        user_id: int,
        slot: int,
        crop_type: str | None = None,
        planted_at: datetime | None = None,
    ) -> bool:
        """Flip ``matured_notified`` for the crop currently on the plot.

        When ``crop_type`` is given, a plot that was harvested or replanted
        with something else is left untouched. ``planted_at`` narrows this to
        one planting, so a replant of the same crop keeps its own flag.

        Returns:
            True if a row was updated
        """
        async with self.db.transaction() as session:
            plot = await session.scalar(
                select(Plot)
                .where(Plot.user_id == user_id, Plot.slot == slot)
                .with_for_update()
            )
            if crop_type is None:
                updated = plot is not None
            else:
                updated = self._holds_crop(plot, crop_type, planted_at)
            if updated:
                plot.matured_notified = True

        logger.debug("Maturity flag updated", user_id=user_id, slot=slot, updated=updated)
        return updated

    async def notification_pending(
        self,
        user_id: int,
        slot: int,
        crop_type: str,
        planted_at: datetime | None = None,
    ) -> bool:
        """Whether the announced planting is still on the plot and its owner not yet told."""
        async with self.db.transaction() as session:
            plot = await session.get(Plot, (user_id, slot))

        return self._holds_crop(plot, crop_type, planted_at) and not plot.matured_notified
