"""Main entry point - runs one configured swap (or simulation)."""

import asyncio
import logging
import signal
import sys
from typing import Optional, Union

from swapgate.chains import get_stablecoin_address
from swapgate.config import Settings, get_settings
from swapgate.errors import ConfigError
from swapgate.routing.base import SwapRequest
from swapgate.swap.executor import SwapExecutor
from swapgate.swap.models import SimulationReport, SwapResult

logger = logging.getLogger(__name__)


class Application:
    """Composition root: builds the pipeline from settings and runs it."""

    def __init__(self, settings: Optional[Settings] = None, executor: Optional[SwapExecutor] = None):
        self.settings = settings or get_settings()
        self.executor = executor
        self._shutdown_event = asyncio.Event()

    def configure_logging(self) -> None:
        log_level = logging.DEBUG if self.settings.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    def build_request(self) -> SwapRequest:
        """Swap described by the settings.

        An empty destination token means the chain's USDC.
        """
        to_token = self.settings.swap_to_token or get_stablecoin_address(self.settings.chain_index, "USDC")
        if not to_token:
            raise ConfigError(f"No SWAP_TO_TOKEN set and no USDC known for chain {self.settings.chain_index}")
        return SwapRequest(
            from_token_address=self.settings.swap_from_token,
            to_token_address=to_token,
            amount=self.settings.swap_amount,
            slippage_percent=self.settings.default_slippage_percent,
            chain_index=self.settings.chain_index,
        )

    async def start(self) -> Union[SwapResult, SimulationReport, None]:
        """Run the preflight check, then simulate or execute."""
        self.configure_logging()
        logger.info("Starting swapgate...")
        logger.info(f"Environment: {self.settings.environment}")
        logger.debug(f"Settings: {self.settings.get_safe_dict()}")

        missing = self.settings.missing_credentials()
        if missing:
            raise ConfigError(f"Missing required credentials: {', '.join(missing)}")

        if self.executor is None:
            self.executor = SwapExecutor.from_settings(self.settings)

        try:
            preflight = await self.executor.preflight_check()
            if not preflight["ok"]:
                logger.error("Preflight check failed, not swapping")
                return None

            request = self.build_request()
            if self.settings.swap_mode == "simulate":
                logger.info("Running in simulate mode, nothing will be signed")
                report = await self.executor.simulate_only(request)
                self._log_outcome(report.success, report.error_kind, report.error, report.action)
                return report

            result = await self.executor.execute_swap(request, cancel_event=self._shutdown_event)
            self._log_outcome(result.success, result.error_kind, result.error, result.action)
            if result.success:
                logger.info(f"Order: {result.order_id or '(rpc)'} tx: {result.tx_hash}")
                if result.explorer_url:
                    logger.info(f"Explorer: {result.explorer_url}")
            return result
        finally:
            await self._cleanup()

    @staticmethod
    def _log_outcome(success: bool, kind: Optional[str], message: Optional[str], action: Optional[str]):
        if success:
            logger.info("Done")
        else:
            logger.error(f"Failed [{kind}]: {message}")
            logger.info(f"Suggested action: {action}")

    async def _cleanup(self):
        """Cleanup resources."""
        logger.info("Cleaning up...")
        if self.executor:
            await self.executor.aclose()
        logger.info("Cleanup complete")

    def shutdown(self):
        """Signal shutdown; a running tracker stops at its next poll."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = Application()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    exit_code = 1
    try:
        outcome = loop.run_until_complete(app.start())
        exit_code = 0 if outcome is not None and outcome.success else 1
    except (ConfigError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
