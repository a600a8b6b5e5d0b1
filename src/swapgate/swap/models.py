"""Data types flowing through the swap pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from swapgate.routing.base import Quote

TX_TYPE_LEGACY = 0
TX_TYPE_EIP1559 = 2


@dataclass(frozen=True)
class FeeData:
    """Live fee data read from the chain just before signing."""

    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None
    base_fee_per_gas: Optional[int] = None

    @property
    def supports_eip1559(self) -> bool:
        """Fee-market fields are available."""
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None


@dataclass(frozen=True)
class UnsignedTransaction:
    """Transaction ready for offline signing.

    Carries either the EIP-1559 fee pair or a legacy gas price, never both.
    """

    from_address: str
    to: str
    data: str
    value: int
    gas_limit: int
    nonce: int
    chain_id: int
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None

    @property
    def tx_type(self) -> int:
        return TX_TYPE_EIP1559 if self.max_fee_per_gas is not None else TX_TYPE_LEGACY

    def to_tx_params(self) -> dict:
        """Transaction dict in the shape eth_account expects."""
        params = {
            "nonce": self.nonce,
            "gas": self.gas_limit,
            "to": self.to,
            "value": self.value,
            "data": self.data,
            "chainId": self.chain_id,
        }
        if self.tx_type == TX_TYPE_EIP1559:
            params["type"] = TX_TYPE_EIP1559
            params["maxFeePerGas"] = self.max_fee_per_gas
            params["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas
        else:
            params["gasPrice"] = self.gas_price
        return params


@dataclass(frozen=True)
class SignedTransaction:
    """Serialized signed transaction."""

    raw_transaction_hex: str
    transaction_hash: str


class BroadcastChannel(str, Enum):
    """How a signed transaction reached the network."""

    GATEWAY = "gateway"
    RPC = "rpc"


@dataclass(frozen=True)
class BroadcastOrder:
    """Handle used to poll a submitted transaction.

    Gateway broadcasts carry an order id; RPC fallback broadcasts carry only
    the transaction hash.
    """

    chain_index: str
    wallet_address: str
    order_id: Optional[str] = None
    tx_hash: Optional[str] = None
    channel: BroadcastChannel = BroadcastChannel.GATEWAY

    @property
    def identifier(self) -> str:
        return self.order_id or self.tx_hash or ""


class TrackingState(str, Enum):
    """Order tracking states."""

    SUBMITTED = "submitted"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


# Gateway txStatus codes
TX_STATUS_PENDING = "1"
TX_STATUS_SUCCESS = "2"
TX_STATUS_FAILED = "3"

TX_STATUS_TO_STATE = {
    TX_STATUS_PENDING: TrackingState.PENDING,
    TX_STATUS_SUCCESS: TrackingState.CONFIRMED,
    TX_STATUS_FAILED: TrackingState.FAILED,
}


@dataclass(frozen=True)
class OrderRecord:
    """Most recent status of an order, normalised across sources."""

    tx_status: str
    tx_hash: Optional[str] = None
    fail_reason: Optional[str] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def state(self) -> Optional[TrackingState]:
        return TX_STATUS_TO_STATE.get(self.tx_status)

    @classmethod
    def from_gateway(cls, order: dict) -> "OrderRecord":
        """From ``data[0].orders[0]`` of the orders endpoint."""
        return cls(
            tx_status=str(order["txStatus"]),
            tx_hash=order.get("txHash") or None,
            fail_reason=order.get("failReason") or None,
            raw=order,
        )

    @classmethod
    def from_receipt(cls, tx_hash: str, receipt: Optional[dict]) -> "OrderRecord":
        """From an ``eth_getTransactionReceipt`` result (None while pending)."""
        if receipt is None:
            return cls(tx_status=TX_STATUS_PENDING, tx_hash=tx_hash)

        status = receipt.get("status")
        if isinstance(status, str):
            status = int(status, 16)
        if status == 1:
            return cls(tx_status=TX_STATUS_SUCCESS, tx_hash=tx_hash, raw=receipt)
        return cls(
            tx_status=TX_STATUS_FAILED,
            tx_hash=tx_hash,
            fail_reason="execution reverted",
            raw=receipt,
        )


@dataclass
class TrackingResult:
    """Outcome of tracking an order."""

    state: TrackingState
    order: BroadcastOrder
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    record: Optional[OrderRecord] = None
    polls: int = 0


@dataclass(frozen=True)
class ClassifiedError:
    """Structured failure with a suggested remediation."""

    kind: str
    message: str
    action: str


@dataclass
class SimulationResult:
    """Gateway simulation outcome."""

    gas_used: Optional[str] = None
    intention: Optional[str] = None
    raw: dict = field(default_factory=dict, repr=False)


@dataclass
class SimulationReport:
    """Result of a simulate-only run (no signing or broadcast)."""

    success: bool
    quote: Optional[Quote] = None
    simulation: Optional[SimulationResult] = None
    gas_limit: Optional[int] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    action: Optional[str] = None

    @property
    def estimated_gas_used(self) -> Optional[str]:
        return self.simulation.gas_used if self.simulation else None


@dataclass
class SwapResult:
    """Result of a swap execution."""

    success: bool
    order_id: Optional[str] = None
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    channel: Optional[BroadcastChannel] = None
    quote: Optional[Quote] = None
    approval_tx_hash: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    action: Optional[str] = None
    status: str = "pending"
