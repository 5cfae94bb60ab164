"""Maturity notifications: producer, delivery and consumer.

The plot's ``matured_notified`` flag is only set after the mail relay
accepted the message. A failed delivery leaves it unset, so the next scan
emits the notification again; duplicates are possible, lost
notifications are not.
"""

from dataclasses import dataclass

from aiokafka import ConsumerRecord

from ferm.config import Settings
from ferm.core.errors import PoisonMessageError
from ferm.core.growth import Clock, as_utc, utcnow
from ferm.core.outcome import Applied, Outcome, Rejected
from ferm.infra.broker import MessageBroker
from ferm.infra.logging import get_logger
from ferm.infra.mailer import MailPayload, SmtpMailer
from ferm.schemas.messages import MaturityNotification
from ferm.services.consumer_base import BaseConsumer
from ferm.services.garden_service import MaturedPlot, PlotService

logger = get_logger(__name__)

MATURITY_SUBJECT = "Your crop is ready!"


def build_maturity_mail(notification: MaturityNotification) -> MailPayload:
    return MailPayload(
        to=notification.email,
        subject=MATURITY_SUBJECT,
        body=(
            f'Your "{notification.crop_type}" on plot #{notification.slot} '
            "is ready to harvest."
        ),
    )


class MaturityDelivery:
    """Sends the maturity email and records it on the plot."""

    def __init__(self, mailer: SmtpMailer, plots: PlotService) -> None:
        self.mailer = mailer
        self.plots = plots

    async def deliver(self, notification: MaturityNotification) -> bool:
        """Deliver one notification.

        Returns:
            True if the mail was accepted and the plot flagged as notified
        """
        log = logger.bind(
            request_id=notification.key,
            user_id=notification.user_id,
            slot=notification.slot,
            crop_type=notification.crop_type,
        )

        if not await self.mailer.send(build_maturity_mail(notification)):
            log.error("Failed to deliver maturity email")
            return False

        flagged = await self.plots.mark_notified(
            notification.user_id,
            notification.slot,
            notification.crop_type,
            notification.planted_at,
        )
        log.info("Maturity notification delivered", flagged=flagged)
        return True


@dataclass(frozen=True)
class QueuedDelivery:
    """Publish the notification for the notification consumer."""

    broker: MessageBroker
    topic: str

    async def send(self, notification: MaturityNotification) -> bool:
        await self.broker.publish(self.topic, notification.key, notification.to_payload())
        return True


@dataclass(frozen=True)
class DirectDelivery:
    """Deliver synchronously when the broker is off or down."""

    delivery: MaturityDelivery

    async def send(self, notification: MaturityNotification) -> bool:
        return await self.delivery.deliver(notification)


DeliveryStrategy = QueuedDelivery | DirectDelivery


class MaturityNotificationProducer:
    """Turns scanner hits into notifications."""

    def __init__(
        self,
        broker: MessageBroker,
        delivery: MaturityDelivery,
        topic: str,
        clock: Clock = utcnow,
    ) -> None:
        self.broker = broker
        self.delivery = delivery
        self.topic = topic
        self.clock = clock

    async def strategy(self) -> DeliveryStrategy:
        """Pick the delivery path for this call from broker health.

        A broker that is configured but down counts as unavailable, so
        notifications keep going out directly during an outage.
        """
        if await self.broker.check_ready():
            return QueuedDelivery(self.broker, self.topic)
        return DirectDelivery(self.delivery)

    def build(self, hit: MaturedPlot) -> MaturityNotification:
        return MaturityNotification(
            user_id=hit.user_id,
            slot=hit.slot,
            crop_type=hit.crop_type,
            planted_at=as_utc(hit.planted_at),
            email=hit.email,
            created_at=self.clock(),
        )

    async def dispatch(self, hit: MaturedPlot) -> bool:
        """Queue or deliver one notification.

        Returns:
            True when the notification was queued or delivered

        Raises:
            ServiceUnavailableError: Publishing failed on the queued path
        """
        notification = self.build(hit)
        strategy = await self.strategy()
        sent = await strategy.send(notification)

        logger.info(
            "Maturity notification dispatched",
            request_id=notification.key,
            user_id=hit.user_id,
            slot=hit.slot,
            strategy=type(strategy).__name__,
            sent=sent,
        )
        return sent


class MaturityNotificationConsumer(BaseConsumer):
    """Delivers notifications from the maturity topic."""

    def __init__(
        self,
        broker: MessageBroker,
        delivery: MaturityDelivery,
        topic: str,
        group_id: str,
        *,
        retry_delay_seconds: float = 2.0,
    ) -> None:
        super().__init__(broker, topic, group_id, retry_delay_seconds=retry_delay_seconds)
        self.delivery = delivery

    @classmethod
    def from_settings(
        cls, broker: MessageBroker, delivery: MaturityDelivery, settings: Settings
    ) -> "MaturityNotificationConsumer":
        return cls(
            broker,
            delivery,
            settings.maturity_topic,
            settings.maturity_consumer_group,
            retry_delay_seconds=settings.broker_connect_retry_delay_seconds,
        )

    async def handle(self, record: ConsumerRecord) -> Outcome:
        context = self.record_context(record)

        try:
            notification = MaturityNotification.parse(record.key, record.value)
        except PoisonMessageError as e:
            logger.error("Dropping unparseable maturity notification", error=e.message, **context)
            return Rejected(request_id=None, reason="poison", error=e.message)

        pending = await self.delivery.plots.notification_pending(
            notification.user_id,
            notification.slot,
            notification.crop_type,
            notification.planted_at,
        )
        if not pending:
            logger.info(
                "Skipping notification for plot already notified, harvested or replanted",
                request_id=notification.key,
                user_id=notification.user_id,
                slot=notification.slot,
                **context,
            )
            return Rejected(request_id=notification.key, reason="duplicate", error="Already notified")

        if not await self.delivery.deliver(notification):
            # Flag stays unset; the next scan re-emits
            return Rejected(
                request_id=notification.key,
                reason="undelivered",
                error="Mail relay did not accept the message",
            )

        logger.info(
            "Maturity notification consumed",
            request_id=notification.key,
            user_id=notification.user_id,
            slot=notification.slot,
            **context,
        )
        return Applied(request_id=notification.key, detail={"slot": notification.slot})
