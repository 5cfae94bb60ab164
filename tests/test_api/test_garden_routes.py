"""Tests for garden endpoints."""

import pytest
from httpx import AsyncClient

from conftest import add_item


class TestListPlots:
    @pytest.mark.asyncio
    async def test_plots_created_on_first_visit(self, client: AsyncClient, player):
        response = await client.get("/garden/plots", headers=player)

        assert response.status_code == 200
        data = response.json()
        assert [p["slot"] for p in data["plots"]] == [1, 2, 3, 4, 5, 6]
        assert data["growthMinutes"] == 10
        assert data["canUproot"] is False
        assert all(p["cropType"] is None for p in data["plots"])

    @pytest.mark.asyncio
    async def test_admin_can_uproot(self, client: AsyncClient, admin):
        response = await client.get("/garden/plots", headers=admin)
        assert response.json()["canUproot"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [{}, {"X-User-Id": "abc"}, {"X-User-Id": "0"}, {"X-User-Id": "\u00b2".encode("latin-1")}],
    )
    async def test_requires_user(self, client: AsyncClient, headers):
        response = await client.get("/garden/plots", headers=headers)
        assert response.status_code == 401


class TestPlant:
    """Tests for POST /garden/plant."""

    @pytest.mark.asyncio
    async def test_plant_is_accepted_not_applied(self, client: AsyncClient, runtime, broker, player):
        await runtime.plots.ensure_plots_initialized(1)
        seed_id = await add_item(runtime.db, user_id=1, crop_type="carrot")

        response = await client.post(
            "/garden/plant", json={"slot": 2, "inventoryId": seed_id}, headers=player
        )

        assert response.status_code == 202
        data = response.json()
        assert data["accepted"] is True
        assert data["requestId"] == broker.published[0][1]
        # The plot only changes once the consumer runs
        assert (await runtime.plots.get_plot(1, 2)).crop_type is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{}, {"slot": 2}, {"inventoryId": 7}, {"slot": 0, "inventoryId": 7}, {"slot": 2, "inventoryId": "x"}],
    )
    async def test_plant_validation(self, client: AsyncClient, broker, player, body):
        response = await client.post("/garden/plant", json=body, headers=player)

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert broker.published == []

    @pytest.mark.asyncio
    async def test_plant_without_broker(self, client: AsyncClient, broker, player):
        broker.available = False

        response = await client.post("/garden/plant", json={"slot": 2, "inventoryId": 7}, headers=player)

        assert response.status_code == 503
        assert response.json()["success"] is False


class TestHarvest:
    @pytest.mark.asyncio
    async def test_harvest_matured(self, client: AsyncClient, runtime, clock, player):
        await runtime.plots.ensure_plots_initialized(1)
        seed_id = await add_item(runtime.db, user_id=1, crop_type="radish")
        await runtime.plots.plant(1, 4, seed_id)
        clock.advance(minutes=10)

        response = await client.post("/garden/harvest", json={"slot": 4}, headers=player)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["cropType"] == "radish"
        assert data["inventoryId"] > 0

    @pytest.mark.asyncio
    async def test_harvest_not_ready(self, client: AsyncClient, runtime, player):
        await runtime.plots.ensure_plots_initialized(1)

        response = await client.post("/garden/harvest", json={"slot": 4}, headers=player)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_harvest_missing_slot(self, client: AsyncClient, player):
        response = await client.post("/garden/harvest", json={}, headers=player)
        assert response.status_code == 400


class TestUproot:
    @pytest.mark.asyncio
    async def test_uproot_requires_admin(self, client: AsyncClient, player):
        response = await client.delete("/garden/uproot/2", headers=player)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_uproot(self, client: AsyncClient, runtime, admin):
        await runtime.plots.ensure_plots_initialized(1)
        seed_id = await add_item(runtime.db, user_id=1, crop_type="mango")
        await runtime.plots.plant(1, 2, seed_id)

        response = await client.delete("/garden/uproot/2", headers=admin)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "slot": 2, "cropType": "mango"}

    @pytest.mark.asyncio
    async def test_uproot_empty(self, client: AsyncClient, runtime, admin):
        await runtime.plots.ensure_plots_initialized(1)

        response = await client.delete("/garden/uproot/2", headers=admin)

        assert response.status_code == 400
