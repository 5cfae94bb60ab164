"""Tests for the planting command producer."""

from uuid import UUID

import pytest

from ferm.core.errors import ServiceUnavailableError, ValidationError
from ferm.services.plant_producer import PlantCommandProducer

from conftest import T0, InMemoryBroker


class TestPlantCommandProducer:
    """Tests for PlantCommandProducer."""

    @pytest.fixture
    def producer(self, broker: InMemoryBroker, clock) -> PlantCommandProducer:
        return PlantCommandProducer(broker, "garden.plant", clock=clock)

    @pytest.mark.asyncio
    async def test_submit_publishes_keyed_command(self, producer, broker: InMemoryBroker):
        accepted = await producer.submit(1, "2", 7)

        assert accepted.accepted is True
        assert isinstance(accepted.request_id, UUID)

        topic, key, value = broker.published[0]
        assert topic == "garden.plant"
        assert key == str(accepted.request_id)
        assert value["requestId"] == key
        assert (value["userId"], value["slot"], value["inventoryId"]) == (1, 2, 7)
        assert value["createdAt"].startswith(T0.date().isoformat())

    @pytest.mark.asyncio
    async def test_each_submit_gets_new_request_id(self, producer):
        first = await producer.submit(1, 2, 7)
        second = await producer.submit(1, 2, 7)
        assert first.request_id != second.request_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slot, inventory_id", [(None, 7), (0, 7), (2, "seven"), (2, -7)])
    async def test_invalid_input_not_published(self, producer, broker, slot, inventory_id):
        with pytest.raises(ValidationError):
            await producer.submit(1, slot, inventory_id)
        assert broker.published == []

    @pytest.mark.asyncio
    async def test_broker_disabled(self, producer, broker: InMemoryBroker):
        broker.available = False

        with pytest.raises(ServiceUnavailableError):
            await producer.submit(1, 2, 7)

    @pytest.mark.asyncio
    async def test_publish_failure_propagates(self, producer, broker: InMemoryBroker):
        broker.fail_publish = True

        with pytest.raises(ServiceUnavailableError):
            await producer.submit(1, 2, 7)
