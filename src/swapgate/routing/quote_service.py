"""Quote service for fetching priced swap routes from the aggregator."""

import logging

from swapgate.errors import ApiError
from swapgate.gateway.client import GatewayClient
from swapgate.routing.base import ChainInfo, Quote, validate_amount, validate_slippage

logger = logging.getLogger(__name__)

SWAP_ENDPOINT = "dex/aggregator/swap"
QUOTE_ENDPOINT = "dex/aggregator/quote"
SUPPORTED_CHAIN_ENDPOINT = "dex/aggregator/supported/chain"


class QuoteService:
    """Fetches swap routes for one wallet on one chain.

    No retries at this layer; retry policy belongs to the caller.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        chain_index: str,
        wallet_address: str,
        slippage_param: str = "slippagePercent",
    ):
        self.gateway = gateway
        self.chain_index = str(chain_index)
        self.wallet_address = wallet_address
        self.slippage_param = slippage_param

    async def get_swap_data(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        slippage_percent: str = "0.5",
    ) -> Quote:
        """Get swap calldata for a token pair.

        Args:
            from_token: Source token address
            to_token: Destination token address
            amount: Amount in base units (positive integer string)
            slippage_percent: Slippage tolerance, in (0, 100]

        Returns:
            The first route candidate, including its router ``tx``

        Raises:
            ValueError: On invalid amount or slippage
            ApiError: When the gateway returns a non-zero code
            NetworkError: On transport failure
        """
        amount = validate_amount(amount, allow_zero=False)
        slippage_percent = validate_slippage(slippage_percent)

        params = {
            "chainIndex": self.chain_index,
            "fromTokenAddress": from_token,
            "toTokenAddress": to_token,
            "amount": amount,
            self.slippage_param: slippage_percent,
            "userWalletAddress": self.wallet_address,
        }
        logger.info(
            f"Requesting swap data: {amount} {from_token} -> {to_token} "
            f"(slippage {slippage_percent}%, chain {self.chain_index})"
        )

        data = await self.gateway.get(SWAP_ENDPOINT, params)
        if not data:
            raise ApiError("empty", "No swap route returned", SWAP_ENDPOINT)

        quote = Quote.from_gateway(data[0])
        if quote.tx is None:
            raise ApiError("no_tx", "Swap route carries no transaction data", SWAP_ENDPOINT)
        if quote.from_token_amount and quote.from_token_amount != amount:
            logger.warning(f"Route priced {quote.from_token_amount} input units, requested {amount}")

        logger.info(
            f"Swap route: {quote.to_token_amount} (decimals {quote.to_token_decimal}) "
            f"via {quote.route_description or 'unknown route'}"
        )
        return quote

    async def get_quote(self, from_token: str, to_token: str, amount: str) -> Quote:
        """Get a price-only quote (no calldata)."""
        amount = validate_amount(amount, allow_zero=False)
        params = {
            "chainIndex": self.chain_index,
            "fromTokenAddress": from_token,
            "toTokenAddress": to_token,
            "amount": amount,
        }
        data = await self.gateway.get(QUOTE_ENDPOINT, params)
        if not data:
            raise ApiError("empty", "No quote returned", QUOTE_ENDPOINT)

        quote = Quote.from_gateway(data[0])
        logger.info(f"Quote: {amount} {from_token} -> {quote.to_amount} {to_token}")
        return quote

    async def get_chain_info(self) -> ChainInfo:
        """Get gateway metadata for the configured chain."""
        data = await self.gateway.get(SUPPORTED_CHAIN_ENDPOINT, {"chainIndex": self.chain_index})
        if not data:
            raise ApiError("empty", f"Chain {self.chain_index} not supported", SUPPORTED_CHAIN_ENDPOINT)

        for item in data:
            if str(item.get("chainIndex") or item.get("chainId")) == self.chain_index:
                return ChainInfo.from_gateway(item)
        return ChainInfo.from_gateway(data[0])
