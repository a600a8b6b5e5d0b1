"""Gas limit estimation and pre-broadcast simulation through the gateway."""

import logging
from typing import Optional

from swapgate.errors import ApiError, SimulationFailure
from swapgate.gateway.client import GatewayClient
from swapgate.routing.base import Quote
from swapgate.swap.models import SimulationResult

logger = logging.getLogger(__name__)

GAS_LIMIT_ENDPOINT = "dex/pre-transaction/gas-limit"
SIMULATE_ENDPOINT = "dex/pre-transaction/simulate"


def _tx_request_body(
    chain_index: str,
    from_address: str,
    to_address: str,
    tx_amount: str,
    input_data: str,
) -> dict:
    return {
        "chainIndex": chain_index,
        "fromAddress": from_address,
        "toAddress": to_address,
        "txAmount": tx_amount,
        "extJson": {"inputData": input_data},
    }


def _amount_to_decimal_string(value: Optional[str]) -> str:
    """The gateway wants txAmount in decimal; router calls may carry hex."""
    if not value:
        return "0"
    value = str(value)
    if value.lower().startswith("0x"):
        return str(int(value, 16))
    return value


class GasEstimator:
    """Gas limit estimates for router and approval calls."""

    def __init__(self, gateway: GatewayClient, chain_index: str):
        self.gateway = gateway
        self.chain_index = str(chain_index)

    async def get_gas_limit(
        self,
        from_address: str,
        to_address: str,
        tx_amount: str = "0",
        input_data: str = "",
    ) -> int:
        """Estimate the gas limit for a call.

        Args:
            from_address: Sender
            to_address: Contract being called
            tx_amount: Native value sent, "0" for approvals
            input_data: Calldata

        Returns:
            The gas limit as an int. The gateway sends it as a decimal
            string; it is parsed and checked here instead of by the builder.

        Raises:
            ApiError: On gateway rejection or a malformed gasLimit
            NetworkError: On transport failure
        """
        body = _tx_request_body(
            self.chain_index,
            from_address,
            to_address,
            _amount_to_decimal_string(tx_amount),
            input_data,
        )
        data = await self.gateway.post(GAS_LIMIT_ENDPOINT, body)
        if not data:
            raise ApiError("empty", "No gas limit returned", GAS_LIMIT_ENDPOINT)

        raw_limit = data[0].get("gasLimit")
        try:
            gas_limit = int(str(raw_limit))
        except (TypeError, ValueError):
            raise ApiError("invalid_gas_limit", f"Unexpected gasLimit {raw_limit!r}", GAS_LIMIT_ENDPOINT)
        if gas_limit <= 0:
            raise ApiError("invalid_gas_limit", f"Unexpected gasLimit {raw_limit!r}", GAS_LIMIT_ENDPOINT)

        logger.info(f"Gas limit: {gas_limit}")
        return gas_limit


class TransactionSimulator:
    """Dry-runs a router call before anything is signed."""

    def __init__(self, gateway: GatewayClient, chain_index: str):
        self.gateway = gateway
        self.chain_index = str(chain_index)

    async def simulate(self, quote: Quote) -> SimulationResult:
        """Simulate the quote's router call.

        Raises:
            SimulationFailure: If the simulation reports a failReason
            ApiError: On gateway rejection
            NetworkError: On transport failure
        """
        if quote.tx is None:
            raise ApiError("no_tx", "Quote carries no transaction data", SIMULATE_ENDPOINT)

        tx = quote.tx
        body = _tx_request_body(
            self.chain_index,
            tx.from_address,
            tx.to,
            _amount_to_decimal_string(tx.value),
            tx.data,
        )
        logger.info("Simulating transaction...")
        data = await self.gateway.post(SIMULATE_ENDPOINT, body)
        if not data:
            raise ApiError("empty", "No simulation result returned", SIMULATE_ENDPOINT)

        result = data[0]
        fail_reason = result.get("failReason")
        if fail_reason:
            logger.warning(f"Simulation failed: {fail_reason}")
            raise SimulationFailure(fail_reason, result)

        simulation = SimulationResult(
            gas_used=result.get("gasUsed"),
            intention=result.get("intention"),
            raw=result,
        )
        logger.info(f"Simulation passed (gas used: {simulation.gas_used or 'unknown'})")
        return simulation
