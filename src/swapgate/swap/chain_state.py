"""Live chain state over JSON-RPC.

Nonce and fee data are read here immediately before each signing attempt and
never cached. The only write is ``eth_sendRawTransaction`` for the broadcast
fallback.
"""

import itertools
import logging
from typing import Any, Optional

import httpx
from web3 import Web3

from swapgate.errors import ApiError, NetworkError
from swapgate.http import create_http_client
from swapgate.swap.models import FeeData

logger = logging.getLogger(__name__)


def _hex_to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


class ChainState:
    """JSON-RPC reader for one EVM node."""

    def __init__(
        self,
        rpc_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        default_priority_fee_wei: int = Web3.to_wei(2.5, "gwei"),
        timeout: float = 30.0,
        proxy: Optional[str] = None,
    ):
        self.rpc_url = rpc_url
        self.default_priority_fee_wei = default_priority_fee_wei
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._proxy = proxy
        self._ids = itertools.count(1)

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "ChainState":
        """Create a reader from a Settings instance."""
        return cls(
            rpc_url=settings.evm_rpc_url,
            http_client=http_client,
            default_priority_fee_wei=Web3.to_wei(settings.default_priority_fee_gwei, "gwei"),
            timeout=settings.http_timeout,
            proxy=settings.proxy_url,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy load the HTTP client."""
        if self._client is None:
            self._client = create_http_client(self._timeout, self._proxy)
        return self._client

    async def _rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        """Issue one JSON-RPC call and return its ``result``."""
        try:
            response = await self.client.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params or [],
                    "id": next(self._ids),
                },
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"RPC {method} failed: {e}") from e

        if response.status_code != 200:
            raise NetworkError(f"RPC {method} returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"RPC {method} returned invalid JSON") from e

        if data.get("error"):
            error = data["error"]
            raise ApiError(str(error.get("code", "rpc")), error.get("message", "RPC error"), method)

        return data.get("result")

    async def get_nonce(self, address: str) -> int:
        """Next nonce for address, counting pending transactions."""
        result = await self._rpc_call("eth_getTransactionCount", [address, "pending"])
        nonce = _hex_to_int(result)
        logger.info(f"Nonce for {address}: {nonce}")
        return nonce

    async def get_fee_data(self) -> FeeData:
        """Current fee data.

        EIP-1559 chains: ``maxFee = 2 * baseFee + priorityFee``. Chains whose
        latest block has no base fee get a legacy gas price instead.
        """
        block = await self._rpc_call("eth_getBlockByNumber", ["latest", False])
        base_fee = (block or {}).get("baseFeePerGas")

        if base_fee is None:
            gas_price = _hex_to_int(await self._rpc_call("eth_gasPrice"))
            logger.info(f"Legacy gas price: {Web3.from_wei(gas_price, 'gwei')} gwei")
            return FeeData(gas_price=gas_price)

        base_fee = _hex_to_int(base_fee)
        try:
            priority_fee = _hex_to_int(await self._rpc_call("eth_maxPriorityFeePerGas"))
        except ApiError as e:
            logger.debug(f"eth_maxPriorityFeePerGas unavailable ({e}), using default")
            priority_fee = self.default_priority_fee_wei

        max_fee = base_fee * 2 + priority_fee
        logger.info(
            f"Max Fee Per Gas: {Web3.from_wei(max_fee, 'gwei')} gwei, "
            f"Max Priority Fee: {Web3.from_wei(priority_fee, 'gwei')} gwei"
        )
        return FeeData(
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority_fee,
            base_fee_per_gas=base_fee,
        )

    async def send_raw_transaction(self, raw_transaction_hex: str) -> str:
        """Submit a signed transaction directly to the node; returns its hash."""
        return await self._rpc_call("eth_sendRawTransaction", [raw_transaction_hex])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        """Receipt for a mined transaction, or None while pending."""
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def call(self, to: str, data: str) -> str:
        """Read-only contract call at the latest block."""
        return await self._rpc_call("eth_call", [{"to": to, "data": data}, "latest"])

    async def get_block_number(self) -> int:
        return _hex_to_int(await self._rpc_call("eth_blockNumber"))

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        return _hex_to_int(await self._rpc_call("eth_getBalance", [address, "latest"]))

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
