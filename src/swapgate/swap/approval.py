"""ERC-20 approval step run before swapping a token (not needed for native)."""

import logging
from typing import Optional

from swapgate.chains import is_native_token
from swapgate.errors import ApiError
from swapgate.routing.base import SwapTx
from swapgate.swap.broadcaster import Broadcaster
from swapgate.swap.builder import TransactionBuilder, encode_allowance, encode_approve
from swapgate.swap.chain_state import ChainState
from swapgate.swap.gas import GasEstimator
from swapgate.swap.signer import TransactionSigner
from swapgate.swap.tracker import OrderTracker
from swapgate.utils.locks import WalletNonceLock

logger = logging.getLogger(__name__)


class TokenApprover:
    """Grants the aggregator's approve contract an allowance when needed."""

    def __init__(
        self,
        chain_state: ChainState,
        gas_estimator: GasEstimator,
        builder: TransactionBuilder,
        signer: TransactionSigner,
        broadcaster: Broadcaster,
        tracker: OrderTracker,
        chain_index: str,
        chain_id: int,
    ):
        self.chain_state = chain_state
        self.gas_estimator = gas_estimator
        self.builder = builder
        self.signer = signer
        self.broadcaster = broadcaster
        self.tracker = tracker
        self.chain_index = str(chain_index)
        self.chain_id = chain_id

    async def get_allowance(self, token_address: str, spender: str) -> int:
        """Current allowance of ``spender`` over the wallet's tokens."""
        result = await self.chain_state.call(token_address, encode_allowance(self.signer.address, spender))
        if not result or result == "0x":
            return 0
        try:
            return int(result, 16)
        except ValueError:
            raise ApiError("invalid_allowance", f"Unexpected allowance result {result!r}", "eth_call")

    async def ensure_allowance(
        self,
        token_address: str,
        spender: Optional[str],
        amount: str,
    ) -> Optional[str]:
        """Approve ``spender`` if the allowance is below ``amount``.

        Returns:
            Approval transaction hash, or None when no approval was needed
        """
        if is_native_token(token_address):
            logger.debug("Native token, no approval needed")
            return None
        if not spender:
            raise ApiError("no_spender", "Gateway returned no token approve address")

        allowance = await self.get_allowance(token_address, spender)
        if allowance >= int(amount):
            logger.info(f"Allowance sufficient: {allowance}")
            return None

        logger.info(f"Allowance {allowance} below {amount}, approving {spender}")
        wallet = self.signer.address
        call = SwapTx(from_address=wallet, to=token_address, data=encode_approve(spender), value="0")
        gas_limit = await self.gas_estimator.get_gas_limit(
            wallet, token_address, tx_amount="0", input_data=call.data
        )

        async with WalletNonceLock(wallet, operation="approve"):
            nonce = await self.chain_state.get_nonce(wallet)
            fee_data = await self.chain_state.get_fee_data()
            unsigned = self.builder.build(call, gas_limit, nonce, fee_data, self.chain_id)
            signed = self.signer.sign(unsigned)
            order = await self.broadcaster.broadcast(signed, self.chain_index, wallet)

        result = await self.tracker.track(order)
        logger.info(f"Approval confirmed: {result.tx_hash}")
        return result.tx_hash or signed.transaction_hash
