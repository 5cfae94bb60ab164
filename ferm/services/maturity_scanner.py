"""Maturity scanner: periodic search for ripe, un-notified plots.

Runs as one background task that scans, sleeps and scans again. Scans never
overlap: a scan requested while another is in flight is skipped. A failure
on one plot does not abort the rest of the batch, and a failed scan does not
stop the loop.
"""

import asyncio
from dataclasses import dataclass

from ferm.infra.logging import get_logger
from ferm.services.garden_service import PlotService
from ferm.services.maturity_notifier import MaturityNotificationProducer

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanReport:
    """Result of one scan.

    Attributes:
        found: Matured, un-notified plots returned by the query
        dispatched: Notifications queued or delivered
        failed: Plots whose dispatch raised or was not delivered
    """

    found: int = 0
    dispatched: int = 0
    failed: int = 0


class MaturityScanner:
    """Single-flight scheduled scan over the plot store."""

    def __init__(
        self,
        plots: PlotService,
        producer: MaturityNotificationProducer,
        interval_seconds: float = 60.0,
    ) -> None:
        self.plots = plots
        self.producer = producer
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: asyncio.Task[None] | None = None

        logger.info("MaturityScanner initialized", interval_seconds=interval_seconds)

    @property
    def scan_in_flight(self) -> bool:
        return self._running

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> ScanReport | None:
        """Scan once and dispatch a notification per hit.

        Returns:
            ScanReport, or None when skipped because a scan is in flight
        """
        if self._running:
            logger.debug("Maturity scan already in flight, skipping")
            return None

        self._running = True
        try:
            try:
                hits = await self.plots.find_matured_unnotified()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Failed to query matured plots", error=str(e), exc_info=True)
                return ScanReport()

            dispatched = 0
            failed = 0
            for hit in hits:
                try:
                    if await self.producer.dispatch(hit):
                        dispatched += 1
                    else:
                        failed += 1
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    failed += 1
                    logger.error(
                        "Failed to dispatch maturity notification",
                        user_id=hit.user_id,
                        slot=hit.slot,
                        error_type=type(e).__name__,
                        error=str(e),
                        exc_info=True,
                    )

            report = ScanReport(found=len(hits), dispatched=dispatched, failed=failed)
            if hits:
                logger.info(
                    "Maturity scan finished",
                    found=report.found,
                    dispatched=report.dispatched,
                    failed=report.failed,
                )
            return report

        finally:
            self._running = False

    async def start(self, initial_delay_seconds: float = 0.0) -> None:
        """Start the scan loop in the background. Calling twice keeps one loop."""
        if self.started:
            logger.warning("Maturity scan loop already running")
            return

        logger.info("Starting maturity scan loop", interval_seconds=self.interval_seconds)
        self._task = asyncio.create_task(
            self._loop(initial_delay_seconds),
            name="maturity-scanner",
        )

    async def stop(self) -> None:
        """Cancel the scan loop and wait for it to finish."""
        if self._task is None:
            logger.debug("No maturity scan loop running")
            return

        logger.info("Stopping maturity scan loop")
        self._task.cancel()

        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Maturity scan loop cancelled successfully")

        self._task = None

    async def _loop(self, initial_delay_seconds: float) -> None:
        if initial_delay_seconds > 0:
            await asyncio.sleep(initial_delay_seconds)

        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                logger.info("Maturity scan loop cancelled")
                raise
            except Exception as e:
                logger.error("Error in maturity scan loop", error=str(e), exc_info=True)

            logger.debug("Next maturity scan scheduled", interval_seconds=self.interval_seconds)
            await asyncio.sleep(self.interval_seconds)
