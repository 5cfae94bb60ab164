"""Kafka client wrapper shared by producers and consumers.

Provides:
- One lazily connected producer per broker instance
- Consumers subscribed under a named consumer group
- Bounded connect retries and clean shutdown of everything it created
- Health state: cleared by a failed connect or publish, restored by the next
  success, re-tried after a cooldown
"""

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError

from ferm.config import Settings
from ferm.core.errors import ServiceUnavailableError
from ferm.infra.logging import get_logger
from ferm.infra.retry import retry_async

logger = get_logger(__name__)


def encode_json(value: dict[str, Any]) -> bytes:
    return json.dumps(value, separators=(",", ":"), default=str).encode("utf-8")


class MessageBroker:
    """Durable publish/subscribe topics backed by Kafka.

    The broker is "available" only when enabled and given at least one
    bootstrap server. Producers and consumers are created on demand and
    tracked so that ``close()`` can disconnect all of them. "Healthy" adds
    what the last connect or publish showed about the running cluster.
    """

    def __init__(
        self,
        bootstrap_servers: list[str],
        *,
        enabled: bool = True,
        client_id: str = "ferm-backend",
        connect_attempts: int = 5,
        connect_delay_seconds: float = 2.0,
        health_recheck_seconds: float = 30.0,
        producer_factory: Callable[..., AIOKafkaProducer] = AIOKafkaProducer,
        consumer_factory: Callable[..., AIOKafkaConsumer] = AIOKafkaConsumer,
    ) -> None:
        self.bootstrap_servers = list(bootstrap_servers)
        self.enabled = enabled
        self.client_id = client_id
        self.connect_attempts = connect_attempts
        self.connect_delay_seconds = connect_delay_seconds
        self.health_recheck_seconds = health_recheck_seconds
        self._producer_factory = producer_factory
        self._consumer_factory = consumer_factory
        self._producer: AIOKafkaProducer | None = None
        self._producer_lock = asyncio.Lock()
        self._consumers: set[AIOKafkaConsumer] = set()
        self._unhealthy_since: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MessageBroker":
        return cls(
            settings.broker_servers,
            enabled=settings.broker_enabled,
            client_id=settings.broker_client_id,
            connect_attempts=settings.broker_connect_retries,
            connect_delay_seconds=settings.broker_connect_retry_delay_seconds,
            health_recheck_seconds=settings.broker_health_recheck_seconds,
        )

    @property
    def available(self) -> bool:
        """Whether publishing and subscribing are configured at all."""
        return self.enabled and bool(self.bootstrap_servers)

    @property
    def healthy(self) -> bool:
        """Configured and not known to be down.

        After a failure the broker counts as down for ``health_recheck_seconds``;
        then the next caller gets to try it again.
        """
        if not self.available:
            return False
        if self._unhealthy_since is None:
            return True
        return time.monotonic() - self._unhealthy_since >= self.health_recheck_seconds

    async def check_ready(self) -> bool:
        """Whether a publish is expected to succeed right now.

        Connects the producer if needed. Never raises.
        """
        if not self.healthy:
            return False
        try:
            await self._get_producer()
        except ServiceUnavailableError:
            return False
        return True

    def _mark_healthy(self) -> None:
        if self._unhealthy_since is not None:
            logger.info("Kafka broker reachable again", brokers=self.bootstrap_servers)
            self._unhealthy_since = None

    def _mark_unhealthy(self, error: Exception) -> None:
        logger.warning(
            "Kafka broker marked unhealthy",
            brokers=self.bootstrap_servers,
            recheck_seconds=self.health_recheck_seconds,
            error=str(error),
        )
        self._unhealthy_since = time.monotonic()

    async def open(self) -> None:
        """Connect the producer eagerly so startup fails fast."""
        if not self.available:
            logger.info("Kafka disabled, broker not opened")
            return
        await self._get_producer()

    async def _get_producer(self) -> AIOKafkaProducer:
        async with self._producer_lock:
            if self._producer is None:
                try:
                    self._producer = await retry_async(
                        self._start_producer,
                        attempts=self.connect_attempts,
                        delay_seconds=self.connect_delay_seconds,
                        target="kafka producer",
                    )
                except ServiceUnavailableError as e:
                    self._mark_unhealthy(e)
                    raise
                self._mark_healthy()
                logger.info(
                    "Kafka producer connected",
                    client_id=self.client_id,
                    brokers=self.bootstrap_servers,
                )
            return self._producer

    async def _start_producer(self) -> AIOKafkaProducer:
        producer = self._producer_factory(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            acks="all",
        )
        try:
            await producer.start()
        except Exception:
            await producer.stop()
            raise
        return producer

    async def publish(self, topic: str, key: str, value: dict[str, Any]) -> None:
        """Publish one JSON message and wait for the broker acknowledgement.

        Args:
            topic: Destination topic
            key: Partitioning key (the message's request id)
            value: JSON-serializable payload

        Raises:
            ServiceUnavailableError: If the broker is disabled or the send fails
        """
        if not self.available:
            raise ServiceUnavailableError("Message broker is disabled")

        producer = await self._get_producer()
        try:
            metadata = await producer.send_and_wait(
                topic,
                key=key.encode("utf-8"),
                value=encode_json(value),
            )
        except KafkaError as e:
            logger.error("Kafka publish failed", topic=topic, key=key, error=str(e))
            self._mark_unhealthy(e)
            raise ServiceUnavailableError(f"Failed to publish to {topic}") from e

        self._mark_healthy()

        logger.debug(
            "Kafka message published",
            topic=topic,
            key=key,
            partition=getattr(metadata, "partition", None),
            offset=getattr(metadata, "offset", None),
        )

    async def create_consumer(self, topic: str, group_id: str) -> AIOKafkaConsumer:
        """Create and connect a consumer subscribed to ``topic``.

        Offsets are committed manually by the caller after each message is
        handled, giving at-least-once delivery.

        Raises:
            ServiceUnavailableError: If the broker is disabled or unreachable
        """
        if not self.available:
            raise ServiceUnavailableError("Message broker is disabled")

        async def start() -> AIOKafkaConsumer:
            consumer = self._consumer_factory(
                topic,
                bootstrap_servers=self.bootstrap_servers,
                client_id=self.client_id,
                group_id=group_id,
                enable_auto_commit=False,
                auto_offset_reset="latest",
            )
            try:
                await consumer.start()
            except Exception:
                await consumer.stop()
                raise
            return consumer

        try:
            consumer = await retry_async(
                start,
                attempts=self.connect_attempts,
                delay_seconds=self.connect_delay_seconds,
                target=f"kafka consumer {group_id}",
            )
        except ServiceUnavailableError as e:
            self._mark_unhealthy(e)
            raise
        self._mark_healthy()
        self._consumers.add(consumer)
        logger.info(
            "Kafka consumer connected",
            topic=topic,
            group_id=group_id,
            brokers=self.bootstrap_servers,
        )
        return consumer

    async def release_consumer(self, consumer: AIOKafkaConsumer) -> None:
        """Unsubscribe and disconnect a consumer created by this broker."""
        self._consumers.discard(consumer)
        try:
            consumer.unsubscribe()
            await consumer.stop()
            logger.info("Kafka consumer disconnected")
        except Exception as e:
            logger.error("Failed to disconnect Kafka consumer", error=str(e), exc_info=True)

    async def close(self) -> None:
        """Disconnect the producer and every consumer still registered."""
        if self._producer is not None:
            try:
                await self._producer.stop()
                logger.info("Kafka producer disconnected")
            except Exception as e:
                logger.error("Failed to disconnect Kafka producer", error=str(e), exc_info=True)
            self._producer = None

        for consumer in list(self._consumers):
            await self.release_consumer(consumer)
