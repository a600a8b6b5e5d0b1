"""Order tracker.

Polls a broadcast order until it reaches a terminal state:

    Submitted -> Pending (self-loop) -> Confirmed | Failed
                                     -> TimedOut (deadline)

Gateway orders are polled through the orders endpoint; orders that went out
over the RPC fallback only have a hash and are polled by receipt.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from swapgate.chains import build_explorer_url
from swapgate.errors import (
    ApiError,
    NetworkError,
    TrackingCancelled,
    TrackingTimeout,
    TransactionFailed,
)
from swapgate.gateway.client import GatewayClient
from swapgate.swap.chain_state import ChainState
from swapgate.swap.classifier import classify_failed_order
from swapgate.swap.models import (
    BroadcastOrder,
    ClassifiedError,
    OrderRecord,
    TrackingResult,
    TrackingState,
)

logger = logging.getLogger(__name__)

ORDERS_ENDPOINT = "dex/post-transaction/orders"

# Malformed or partial poll payloads are treated like network hiccups
TRANSIENT_POLL_ERRORS = (NetworkError, ApiError, KeyError, IndexError, ValueError, TypeError)


@dataclass
class _PollState:
    """Loop state carried between polls."""

    last_observed_status: Optional[str] = None
    polls: int = 0


class OrderTracker:
    """Polls order status until Confirmed, Failed or the deadline."""

    def __init__(
        self,
        gateway: GatewayClient,
        chain_state: Optional[ChainState] = None,
        classifier: Callable[[OrderRecord], ClassifiedError] = classify_failed_order,
        poll_interval: float = 5.0,
        timeout: float = 300.0,
    ):
        self.gateway = gateway
        self.chain_state = chain_state
        self.classifier = classifier
        self.poll_interval = poll_interval
        self.timeout = timeout

    async def fetch_record(self, order: BroadcastOrder) -> Optional[OrderRecord]:
        """Fetch the most recent record for an order (None if not indexed yet)."""
        self.check_trackable(order)
        if order.order_id:
            params = {
                "orderId": order.order_id,
                "chainIndex": order.chain_index,
                "address": order.wallet_address,
                "limit": "1",
            }
            data = await self.gateway.get(ORDERS_ENDPOINT, params)
            if not data:
                return None
            orders = data[0].get("orders") or []
            if not orders:
                return None
            return OrderRecord.from_gateway(orders[0])

        receipt = await self.chain_state.get_transaction_receipt(order.tx_hash)
        return OrderRecord.from_receipt(order.tx_hash, receipt)

    def check_trackable(self, order: BroadcastOrder) -> None:
        """Raise ValueError unless this tracker can poll the order.

        RPC fallback orders carry only a hash and need a ChainState.
        """
        if order.order_id:
            return
        if not order.tx_hash:
            raise ValueError(f"Order has no trackable identifier: {order}")
        if self.chain_state is None:
            raise ValueError(f"Order {order.tx_hash} needs an RPC node to track, none configured")

    async def track(
        self,
        order: BroadcastOrder,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TrackingResult:
        """Poll until the order is terminal.

        Returns:
            TrackingResult in the Confirmed state

        Raises:
            TransactionFailed: Order reached Failed (carries the classified error)
            TrackingTimeout: Deadline passed without a terminal state
            TrackingCancelled: ``cancel_event`` was set
            ValueError: Order cannot be polled by this tracker
        """
        self.check_trackable(order)
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.timeout
        poll = _PollState()
        logger.info(f"Tracking order {order.identifier} ({order.channel.value})")

        while loop.time() < deadline:
            if cancel_event is not None and cancel_event.is_set():
                raise TrackingCancelled(f"Tracking cancelled for {order.identifier}")

            poll.polls += 1
            record = None
            try:
                record = await self.fetch_record(order)
            except TRANSIENT_POLL_ERRORS as e:
                logger.warning(f"Poll {poll.polls} for {order.identifier} failed: {e}")

            if record is not None and record.tx_status != poll.last_observed_status:
                poll.last_observed_status = record.tx_status
                result = self._on_status_change(order, record, poll)
                if result is not None:
                    return result

            if cancel_event is None:
                await asyncio.sleep(self.poll_interval)
            else:
                try:
                    await asyncio.wait_for(cancel_event.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass

        raise TrackingTimeout(order.identifier, loop.time() - started, poll.last_observed_status)

    def _on_status_change(
        self,
        order: BroadcastOrder,
        record: OrderRecord,
        poll: _PollState,
    ) -> Optional[TrackingResult]:
        """Act on a newly observed status; returns a result when Confirmed."""
        state = record.state
        if state is None:
            logger.warning(f"Order {order.identifier}: unknown status {record.tx_status!r}")
            return None

        tx_hash = record.tx_hash or order.tx_hash

        if state == TrackingState.PENDING:
            logger.info(f"Order {order.identifier}: pending")
            return None

        if state == TrackingState.CONFIRMED:
            explorer_url = build_explorer_url(order.chain_index, tx_hash) if tx_hash else None
            logger.info(f"Swap completed successfully! Transaction hash: {tx_hash}")
            if explorer_url:
                logger.info(f"Explorer: {explorer_url}")
            return TrackingResult(
                state=state,
                order=order,
                tx_hash=tx_hash,
                explorer_url=explorer_url,
                record=record,
                polls=poll.polls,
            )

        classified = self.classifier(record)
        logger.error(f"Swap failed: {classified.message}")
        raise TransactionFailed(classified, tx_hash=tx_hash)
