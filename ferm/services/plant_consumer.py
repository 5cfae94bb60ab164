"""Planting command consumer.

Applies queued PlantCommands through the plot state machine. Replays and
racing commands fail the state machine's own validation (slot occupied,
seed already consumed) and are dropped, which makes redelivery harmless.
"""

from aiokafka import ConsumerRecord

from ferm.config import Settings
from ferm.core.errors import ConflictError, PoisonMessageError, ValidationError
from ferm.core.outcome import Applied, Outcome, Rejected
from ferm.infra.broker import MessageBroker
from ferm.infra.logging import get_logger
from ferm.schemas.messages import PlantCommand
from ferm.services.consumer_base import BaseConsumer
from ferm.services.garden_service import PlotService

logger = get_logger(__name__)


class PlantCommandConsumer(BaseConsumer):
    """Runs ``PlotService.plant`` for every command on the planting topic."""

    def __init__(
        self,
        broker: MessageBroker,
        plots: PlotService,
        topic: str,
        group_id: str,
        *,
        retry_delay_seconds: float = 2.0,
    ) -> None:
        super().__init__(broker, topic, group_id, retry_delay_seconds=retry_delay_seconds)
        self.plots = plots

    @classmethod
    def from_settings(
        cls, broker: MessageBroker, plots: PlotService, settings: Settings
    ) -> "PlantCommandConsumer":
        return cls(
            broker,
            plots,
            settings.plant_topic,
            settings.plant_consumer_group,
            retry_delay_seconds=settings.broker_connect_retry_delay_seconds,
        )

    async def handle(self, record: ConsumerRecord) -> Outcome:
        context = self.record_context(record)

        try:
            command = PlantCommand.parse(record.key, record.value)
        except PoisonMessageError as e:
            logger.error("Dropping unparseable planting command", error=e.message, **context)
            return Rejected(request_id=None, reason="poison", error=e.message)

        log = logger.bind(
            request_id=command.key,
            user_id=command.user_id,
            slot=command.slot,
            inventory_id=command.inventory_id,
            **context,
        )
        log.info("Planting command received")

        try:
            result = await self.plots.plant(command.user_id, command.slot, command.inventory_id)
        except (ValidationError, ConflictError) as e:
            reason = "conflict" if isinstance(e, ConflictError) else "validation"
            log.info("Planting command rejected", reason=reason, error=e.message)
            return Rejected(request_id=command.key, reason=reason, error=e.message)

        log.info("Planting command applied", crop_type=result.crop_type)
        return Applied(
            request_id=command.key,
            detail={"slot": result.slot, "crop_type": result.crop_type},
        )
