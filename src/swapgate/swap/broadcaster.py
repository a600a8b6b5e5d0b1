"""Broadcaster for signed transactions.

Submits through the gateway first and falls back to the RPC node's
``eth_sendRawTransaction``. Nothing is retried here: resubmission needs a
fresh nonce and is the caller's decision.
"""

import logging
from typing import Optional

from swapgate.errors import ApiError, BroadcastFailure, NetworkError
from swapgate.gateway.client import GatewayClient
from swapgate.swap.chain_state import ChainState
from swapgate.swap.models import BroadcastChannel, BroadcastOrder, SignedTransaction

logger = logging.getLogger(__name__)

BROADCAST_ENDPOINT = "dex/pre-transaction/broadcast-transaction"

# Node replies meaning this exact signed transaction was already received
ALREADY_KNOWN_MARKERS = ("already known", "already imported", "known transaction")


def _is_already_known(error: ApiError) -> bool:
    message = (error.message or "").lower()
    return any(marker in message for marker in ALREADY_KNOWN_MARKERS)


class Broadcaster:
    """Gateway broadcast with raw-RPC fallback."""

    def __init__(
        self,
        gateway: GatewayClient,
        chain_state: Optional[ChainState] = None,
        rpc_fallback_enabled: bool = True,
    ):
        self.gateway = gateway
        self.chain_state = chain_state
        self.rpc_fallback_enabled = rpc_fallback_enabled

    @property
    def fallback_available(self) -> bool:
        return self.rpc_fallback_enabled and self.chain_state is not None

    async def broadcast(
        self,
        signed: SignedTransaction,
        chain_index: str,
        wallet_address: str,
    ) -> BroadcastOrder:
        """Submit a signed transaction.

        Returns:
            BroadcastOrder with an order id (gateway) or tx hash (RPC)

        Raises:
            BroadcastFailure: When every available channel failed
        """
        try:
            order_id = await self._broadcast_gateway(signed, chain_index, wallet_address)
        except (ApiError, NetworkError) as e:
            logger.warning(f"Gateway broadcast failed: {e}")
            api_error = e
        else:
            logger.info(f"Broadcast via gateway, order id: {order_id}")
            return BroadcastOrder(
                chain_index=str(chain_index),
                wallet_address=wallet_address,
                order_id=order_id,
                tx_hash=signed.transaction_hash,
                channel=BroadcastChannel.GATEWAY,
            )

        if not self.fallback_available:
            raise BroadcastFailure(api_error=api_error, tx_hash=signed.transaction_hash)

        logger.info("Falling back to RPC broadcast")
        try:
            tx_hash = await self.chain_state.send_raw_transaction(signed.raw_transaction_hex)
        except ApiError as e:
            if not _is_already_known(e):
                logger.error(f"RPC broadcast failed: {e}")
                raise BroadcastFailure(api_error=api_error, rpc_error=e, tx_hash=signed.transaction_hash)
            # Same raw transaction is already in the node's pool
            logger.warning(f"Transaction {signed.transaction_hash} already known to the node, tracking it")
            tx_hash = None
        except NetworkError as e:
            logger.error(f"RPC broadcast failed: {e}")
            raise BroadcastFailure(api_error=api_error, rpc_error=e, tx_hash=signed.transaction_hash)

        tx_hash = tx_hash or signed.transaction_hash
        logger.info(f"Broadcast via RPC, tx hash: {tx_hash}")
        return BroadcastOrder(
            chain_index=str(chain_index),
            wallet_address=wallet_address,
            tx_hash=tx_hash,
            channel=BroadcastChannel.RPC,
        )

    async def _broadcast_gateway(
        self,
        signed: SignedTransaction,
        chain_index: str,
        wallet_address: str,
    ) -> str:
        body = {
            "signedTx": signed.raw_transaction_hex,
            "chainIndex": str(chain_index),
            "address": wallet_address,
        }
        data = await self.gateway.post(BROADCAST_ENDPOINT, body)
        order_id = data[0].get("orderId") if data else None
        if not order_id:
            raise ApiError("no_order_id", "Broadcast response carries no orderId", BROADCAST_ENDPOINT)
        return str(order_id)
