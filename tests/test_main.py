"""Tests for the application runner."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from swapgate.errors import ConfigError
from swapgate.main import Application
from swapgate.swap.models import SimulationReport, SwapResult

from tests.conftest import NATIVE, USDC


def _executor(preflight_ok: bool = True) -> MagicMock:
    executor = MagicMock()
    executor.preflight_check = AsyncMock(return_value={"ok": preflight_ok})
    executor.simulate_only = AsyncMock(return_value=SimulationReport(success=True, gas_limit=210000))
    executor.execute_swap = AsyncMock(return_value=SwapResult(success=True, order_id="1", tx_hash="0xabc"))
    executor.aclose = AsyncMock()
    return executor


class TestApplication:
    """Tests for Application."""

    def test_build_request_from_settings(self, settings):
        request = Application(settings).build_request()

        assert request.from_token_address == NATIVE
        assert request.to_token_address == USDC
        assert request.amount == "100000000000000"
        assert request.slippage_percent == "0.5"
        assert request.chain_index == "1"

    @pytest.mark.asyncio
    async def test_simulate_mode(self, settings):
        executor = _executor()

        outcome = await Application(settings, executor=executor).start()

        assert outcome.success
        executor.simulate_only.assert_awaited_once()
        executor.execute_swap.assert_not_called()
        executor.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_execute_mode(self, settings):
        executor = _executor()
        app = Application(settings.model_copy(update={"swap_mode": "execute"}), executor=executor)

        outcome = await app.start()

        assert outcome.order_id == "1"
        executor.execute_swap.assert_awaited_once()
        assert executor.execute_swap.call_args.kwargs["cancel_event"] is app._shutdown_event

    @pytest.mark.asyncio
    async def test_preflight_failure_stops(self, settings):
        executor = _executor(preflight_ok=False)

        assert await Application(settings, executor=executor).start() is None
        executor.simulate_only.assert_not_called()
        executor.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_credentials(self, settings):
        app = Application(settings.model_copy(update={"okx_api_key": ""}), executor=_executor())

        with pytest.raises(ConfigError):
            await app.start()

    def test_destination_defaults_to_chain_usdc(self, settings):
        bsc = settings.model_copy(update={"chain_index": "56", "swap_to_token": ""})

        request = Application(bsc).build_request()

        assert request.to_token_address == "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d"
        assert request.chain_index == "56"

    def test_unknown_chain_without_destination(self, settings):
        unknown = settings.model_copy(update={"chain_index": "999", "swap_to_token": ""})

        with pytest.raises(ConfigError):
            Application(unknown).build_request()
