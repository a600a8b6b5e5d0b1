"""Error taxonomy for the swap pipeline.

Each stage fails fast with one of these types; the executor turns them into a
failed SwapResult with a suggested action.
"""

from typing import Optional


class SwapgateError(Exception):
    """Base class for all pipeline errors."""

    pass


class ConfigError(SwapgateError):
    """Required configuration (credentials, wallet) is missing. Not retryable."""

    pass


class NetworkError(SwapgateError):
    """Transport-level failure talking to the gateway or the RPC node."""

    pass


class ApiError(SwapgateError):
    """The gateway (or RPC node) rejected the request."""

    def __init__(self, code: str, message: str, endpoint: Optional[str] = None):
        self.code = str(code)
        self.message = message
        self.endpoint = endpoint
        where = f" ({endpoint})" if endpoint else ""
        super().__init__(f"API error {self.code}{where}: {message}")


class SimulationFailure(SwapgateError):
    """Pre-broadcast simulation reported a failReason."""

    def __init__(self, reason: str, result: Optional[dict] = None):
        self.reason = reason
        self.result = result or {}
        super().__init__(f"Simulation failed: {reason}")


class SigningError(SwapgateError):
    """Transaction could not be built or signed."""

    pass


class BroadcastFailure(SwapgateError):
    """Signed transaction could not be submitted by any channel.

    ``tx_hash`` is the hash of the signed transaction. When the gateway
    failed at the transport level it may still have relayed it, so
    ``may_have_been_sent`` is set and the hash must be checked before any
    resubmission.
    """

    def __init__(
        self,
        api_error: Optional[Exception] = None,
        rpc_error: Optional[Exception] = None,
        tx_hash: Optional[str] = None,
    ):
        self.api_error = api_error
        self.rpc_error = rpc_error
        self.tx_hash = tx_hash
        parts = []
        if api_error is not None:
            parts.append(f"API error: {api_error}")
        if rpc_error is not None:
            parts.append(f"RPC error: {rpc_error}")
        super().__init__("Broadcast failed. " + "; ".join(parts))

    @property
    def may_have_been_sent(self) -> bool:
        return isinstance(self.api_error, NetworkError)


class TrackingTimeout(SwapgateError):
    """Order never reached a terminal state before the deadline."""

    def __init__(self, identifier: str, elapsed: float, last_status: Optional[str] = None):
        self.identifier = identifier
        self.elapsed = elapsed
        self.last_status = last_status
        super().__init__(
            f"Transaction tracking timed out for {identifier} after {elapsed:.1f}s "
            f"(last status: {last_status or 'none'})"
        )


class TrackingCancelled(SwapgateError):
    """Tracking loop was stopped through its cancellation event."""

    pass


class TransactionFailed(SwapgateError):
    """Order reached the Failed terminal state."""

    def __init__(self, classified, tx_hash: Optional[str] = None):
        self.classified = classified
        self.tx_hash = tx_hash
        super().__init__(f"Transaction failed: {classified.message}")


class LockTimeoutError(SwapgateError):
    """Raised when a wallet lock cannot be acquired within the timeout period."""

    pass
