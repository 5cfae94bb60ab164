"""Tests for bounded connect retries."""

from unittest.mock import AsyncMock, patch

import pytest

from ferm.core.errors import TransientInfraError
from ferm.infra.retry import retry_async


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="connected")

        result = await retry_async(operation, attempts=3, delay_seconds=0, target="kafka")

        assert result == "connected"
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_with_fixed_delay(self):
        operation = AsyncMock(side_effect=[OSError("refused"), OSError("refused"), "connected"])

        with patch("ferm.infra.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await retry_async(operation, attempts=5, delay_seconds=2.0, target="database")

        assert result == "connected"
        assert operation.await_count == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        operation = AsyncMock(side_effect=OSError("refused"))

        with patch("ferm.infra.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransientInfraError) as exc_info:
                await retry_async(operation, attempts=3, delay_seconds=1.0, target="database")

        assert operation.await_count == 3
        # No sleep after the last attempt
        assert mock_sleep.await_count == 2
        assert "database" in exc_info.value.message
        assert "refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_at_least_one_attempt(self):
        operation = AsyncMock(return_value=1)
        await retry_async(operation, attempts=0, delay_seconds=0, target="kafka")
        operation.assert_awaited_once()
