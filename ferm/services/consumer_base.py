"""Shared lifecycle for broker consumers.

A consumer runs as a long-lived asyncio task (``start`` / ``stop``) or as a
bounded pull (``drain``). Each record is turned into an Applied or Rejected
outcome; no exception from message handling ever leaves the loop, so one bad
message cannot block its partition. Offsets are committed after handling.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from aiokafka import AIOKafkaConsumer, ConsumerRecord
from aiokafka.errors import KafkaError

from ferm.core.errors import ServiceUnavailableError
from ferm.core.outcome import Applied, Outcome, Rejected
from ferm.infra.broker import MessageBroker
from ferm.infra.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ConsumeProgress:
    """Counters for one consume run."""

    applied: int = 0
    rejected: int = 0


class BaseConsumer(ABC):
    """Subscribes to one topic under one consumer group."""

    def __init__(
        self,
        broker: MessageBroker,
        topic: str,
        group_id: str,
        *,
        retry_delay_seconds: float = 2.0,
    ) -> None:
        self.broker = broker
        self.topic = topic
        self.group_id = group_id
        self.retry_delay_seconds = retry_delay_seconds
        self._consumer: AIOKafkaConsumer | None = None
        self._task: asyncio.Task[ConsumeProgress] | None = None
        self.progress = ConsumeProgress()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @abstractmethod
    async def handle(self, record: ConsumerRecord) -> Outcome:
        """Turn one record into an outcome."""

    def record_context(self, record: ConsumerRecord) -> dict[str, Any]:
        return {
            "topic": record.topic,
            "partition": record.partition,
            "offset": record.offset,
        }

    async def process(self, record: ConsumerRecord) -> Outcome:
        """Handle one record; unexpected errors become a Rejected outcome."""
        try:
            return await self.handle(record)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Unexpected error while handling message",
                consumer=type(self).__name__,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
                **self.record_context(record),
            )
            return Rejected(request_id=None, reason="error", error=str(e))

    async def start(self) -> None:
        """Subscribe and run the consume loop in the background."""
        if self._task is not None:
            logger.warning("Consumer already running", consumer=type(self).__name__)
            return

        if not self.broker.available:
            logger.info("Kafka disabled, consumer not started", consumer=type(self).__name__)
            return

        self._consumer = await self.broker.create_consumer(self.topic, self.group_id)
        self.progress = ConsumeProgress()
        self._task = asyncio.create_task(
            self._consume(self._consumer, self.progress),
            name=f"{type(self).__name__}:{self.topic}",
        )
        logger.info(
            "Consumer started",
            consumer=type(self).__name__,
            topic=self.topic,
            group_id=self.group_id,
        )

    async def stop(self) -> None:
        """Cancel the loop, then unsubscribe and disconnect."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("Consumer loop cancelled", consumer=type(self).__name__)
            except Exception as e:
                logger.error(
                    "Consumer loop had crashed before stop",
                    consumer=type(self).__name__,
                    error=str(e),
                    exc_info=True,
                )
            self._task = None

        if self._consumer is not None:
            await self.broker.release_consumer(self._consumer)
            self._consumer = None

    async def drain(self, limit: int = 10, timeout_seconds: float = 2.0) -> int:
        """Consume until ``limit`` messages were applied or the timeout passes.

        Returns:
            Number of applied messages

        Raises:
            ServiceUnavailableError: The broker is disabled or unreachable
        """
        if not self.broker.available:
            raise ServiceUnavailableError(f"Queue {self.topic} is unavailable")

        consumer = await self.broker.create_consumer(self.topic, self.group_id)
        progress = ConsumeProgress()
        try:
            await asyncio.wait_for(
                self._consume(consumer, progress, limit=limit),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.debug("Drain timed out", topic=self.topic, applied=progress.applied)
        finally:
            await self.broker.release_consumer(consumer)

        logger.info(
            "Drain finished",
            topic=self.topic,
            applied=progress.applied,
            rejected=progress.rejected,
        )
        return progress.applied

    async def _consume(
        self,
        consumer: AIOKafkaConsumer,
        progress: ConsumeProgress,
        limit: int | None = None,
    ) -> ConsumeProgress:
        while True:
            try:
                async for record in consumer:
                    outcome = await self.process(record)
                    await self._commit(consumer)

                    match outcome:
                        case Applied():
                            progress.applied += 1
                        case Rejected():
                            progress.rejected += 1

                    if limit is not None and progress.applied >= limit:
                        return progress
                return progress

            except asyncio.CancelledError:
                raise
            except KafkaError as e:
                logger.error(
                    "Consumer fetch failed, will retry after delay",
                    topic=self.topic,
                    error=str(e),
                    delay_seconds=self.retry_delay_seconds,
                )
                await asyncio.sleep(self.retry_delay_seconds)

    async def _commit(self, consumer: AIOKafkaConsumer) -> None:
        try:
            await consumer.commit()
        except KafkaError as e:
            # Uncommitted offsets are redelivered, which handlers tolerate
            logger.warning("Offset commit failed", topic=self.topic, error=str(e))
