"""Tests for the planting command consumer."""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from ferm.core.outcome import Applied, Rejected
from ferm.services.garden_service import PlotService
from ferm.services.plant_consumer import PlantCommandConsumer

from conftest import InMemoryBroker, add_item, make_record

TOPIC = "garden.plant"


def command(slot: int, inventory_id: int, user_id: int = 1) -> dict:
    return {"requestId": str(uuid4()), "userId": user_id, "slot": slot, "inventoryId": inventory_id}


class TestPlantCommandConsumer:
    """Tests for PlantCommandConsumer."""

    @pytest_asyncio.fixture
    async def plots(self, db, users, clock) -> PlotService:
        service = PlotService(db, growth=timedelta(minutes=10), clock=clock)
        await service.ensure_plots_initialized(1)
        return service

    @pytest.fixture
    def consumer(self, broker: InMemoryBroker, plots: PlotService) -> PlantCommandConsumer:
        return PlantCommandConsumer(broker, plots, TOPIC, "ferm-plant-consumers", retry_delay_seconds=0)

    @pytest.mark.asyncio
    async def test_applies_valid_command(self, consumer, plots, db):
        seed_id = await add_item(db, user_id=1, crop_type="carrot", item_id=7)
        payload = command(2, seed_id)

        outcome = await consumer.process(make_record(TOPIC, payload))

        assert outcome == Applied(payload["requestId"], {"slot": 2, "crop_type": "carrot"})
        assert (await plots.get_plot(1, 2)).crop_type == "carrot"

    @pytest.mark.asyncio
    async def test_poison_message_dropped(self, consumer):
        outcome = await consumer.process(make_record(TOPIC, b"{not json"))

        assert isinstance(outcome, Rejected)
        assert outcome.reason == "poison"

    @pytest.mark.asyncio
    async def test_non_seed_rejected(self, consumer, plots, db):
        from ferm.models import ItemKind

        veg_id = await add_item(db, user_id=1, crop_type="carrot", kind=ItemKind.RAW_VEG)

        outcome = await consumer.process(make_record(TOPIC, command(2, veg_id)))

        assert outcome.reason == "validation"
        assert (await plots.get_plot(1, 2)).crop_type is None

    @pytest.mark.asyncio
    async def test_replay_is_harmless(self, consumer, plots, db):
        seed_id = await add_item(db, user_id=1, crop_type="carrot")
        record = make_record(TOPIC, command(2, seed_id))

        first = await consumer.process(record)
        second = await consumer.process(record)

        assert isinstance(first, Applied)
        assert isinstance(second, Rejected)
        assert second.reason == "conflict"
        assert (await plots.get_plot(1, 2)).crop_type == "carrot"

    @pytest.mark.asyncio
    async def test_drain_processes_queue_in_order(self, consumer, broker: InMemoryBroker, plots, db):
        seed_a = await add_item(db, user_id=1, crop_type="carrot")
        seed_b = await add_item(db, user_id=1, crop_type="radish")
        broker.push_raw(TOPIC, command(3, seed_a))
        broker.push_raw(TOPIC, b"garbage")
        broker.push_raw(TOPIC, command(3, seed_b))
        broker.push_raw(TOPIC, command(4, seed_b))

        applied = await consumer.drain(limit=10, timeout_seconds=1.0)

        assert applied == 2
        assert (await plots.get_plot(1, 3)).crop_type == "carrot"
        assert (await plots.get_plot(1, 4)).crop_type == "radish"
        # Every record is committed, applied or not
        assert broker.consumers[-1].commits == 4
        assert broker.consumers[-1].stopped
