"""Planting command producer.

Accepts a plant request on the request path and queues it; the plot is
changed later by the planting consumer. Planting requires the broker:
there is no local fallback mutation.
"""

from ferm.core.errors import ServiceUnavailableError, positive_int
from ferm.core.growth import Clock, utcnow
from ferm.infra.broker import MessageBroker
from ferm.infra.logging import get_logger
from ferm.schemas.garden import PlantAccepted
from ferm.schemas.messages import PlantCommand

logger = get_logger(__name__)


class PlantCommandProducer:
    """Publishes PlantCommand messages keyed by request id."""

    def __init__(self, broker: MessageBroker, topic: str, clock: Clock = utcnow) -> None:
        self.broker = broker
        self.topic = topic
        self.clock = clock

    async def submit(self, user_id: object, slot: object, inventory_id: object) -> PlantAccepted:
        """Validate and queue a planting.

        Returns:
            Acceptance carrying the request id; the plot is not changed yet

        Raises:
            ValidationError: Any id is not a positive integer
            ServiceUnavailableError: The broker is disabled or unreachable
        """
        command = PlantCommand(
            user_id=positive_int(user_id, "user_id"),
            slot=positive_int(slot, "slot"),
            inventory_id=positive_int(inventory_id, "inventory_id"),
            created_at=self.clock(),
        )

        if not self.broker.available:
            logger.warning("Planting rejected, broker disabled", user_id=command.user_id)
            raise ServiceUnavailableError("Planting queue is unavailable")

        await self.broker.publish(self.topic, command.key, command.to_payload())

        logger.info(
            "Planting command queued",
            request_id=command.key,
            user_id=command.user_id,
            slot=command.slot,
            inventory_id=command.inventory_id,
            topic=self.topic,
        )
        return PlantAccepted(accepted=True, request_id=command.request_id)
