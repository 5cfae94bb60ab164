"""Wiring of the garden services and their lifecycle.

Everything is constructed explicitly from Settings so that the API process,
scripts and tests can each build their own instance.
"""

from ferm.config import Settings
from ferm.core.growth import Clock, utcnow
from ferm.infra.broker import MessageBroker
from ferm.infra.database import Database
from ferm.infra.logging import get_logger
from ferm.infra.mailer import SmtpMailer
from ferm.services.garden_service import PlotService
from ferm.services.inventory_service import InventoryService
from ferm.services.maturity_notifier import (
    MaturityDelivery,
    MaturityNotificationConsumer,
    MaturityNotificationProducer,
)
from ferm.services.maturity_scanner import MaturityScanner
from ferm.services.plant_consumer import PlantCommandConsumer
from ferm.services.plant_producer import PlantCommandProducer

logger = get_logger(__name__)


class GardenRuntime:
    """Owns the database, broker, mailer and the background workers.

    Lifecycle:
        open():  verify the database (fail fast), connect the broker,
                 start both consumers and the maturity scanner
        close(): stop workers first, then disconnect broker and database
    """

    def __init__(
        self,
        settings: Settings,
        *,
        db: Database | None = None,
        broker: MessageBroker | None = None,
        mailer: SmtpMailer | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.settings = settings
        self.db = db or Database.from_settings(settings)
        self.broker = broker or MessageBroker.from_settings(settings)
        self.mailer = mailer or SmtpMailer.from_settings(settings)

        self.plots = PlotService.from_settings(self.db, settings, clock=clock)
        self.inventory = InventoryService(self.db)
        self.plant_producer = PlantCommandProducer(self.broker, settings.plant_topic, clock=clock)
        self.plant_consumer = PlantCommandConsumer.from_settings(self.broker, self.plots, settings)
        self.delivery = MaturityDelivery(self.mailer, self.plots)
        self.maturity_producer = MaturityNotificationProducer(
            self.broker,
            self.delivery,
            settings.maturity_topic,
            clock=clock,
        )
        self.maturity_consumer = MaturityNotificationConsumer.from_settings(
            self.broker,
            self.delivery,
            settings,
        )
        self.scanner = MaturityScanner(
            self.plots,
            self.maturity_producer,
            interval_seconds=settings.maturity_check_interval_seconds,
        )

    @property
    def scanner_wanted(self) -> bool:
        """Scanning is pointless when nothing could ever deliver a notification."""
        return self.settings.scanner_enabled and (
            self.settings.email_enabled or self.broker.available
        )

    async def open(self, start_workers: bool = True) -> None:
        """Connect dependencies and start background workers.

        Raises:
            TransientInfraError: Database or broker unreachable after retries
        """
        await self.db.connect(
            attempts=self.settings.db_connect_retries,
            delay_seconds=self.settings.db_connect_retry_delay_seconds,
        )
        await self.broker.open()

        if not start_workers:
            return

        await self.plant_consumer.start()
        await self.maturity_consumer.start()

        if self.scanner_wanted:
            await self.scanner.start()
        else:
            logger.info("Maturity scanner not started, no delivery path configured")

    async def close(self) -> None:
        await self.scanner.stop()
        await self.plant_consumer.stop()
        await self.maturity_consumer.stop()
        await self.broker.close()
        await self.db.close()
        logger.info("Garden runtime closed")
