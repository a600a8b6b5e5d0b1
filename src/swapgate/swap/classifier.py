"""Failure classification.

Maps failed orders and pipeline exceptions to a structured error with a
suggested action. These functions never raise.
"""

from swapgate.errors import (
    ApiError,
    BroadcastFailure,
    ConfigError,
    LockTimeoutError,
    NetworkError,
    SigningError,
    SimulationFailure,
    TrackingCancelled,
    TrackingTimeout,
    TransactionFailed,
)
from swapgate.swap.models import ClassifiedError, OrderRecord

TRANSACTION_FAILED = "TRANSACTION_FAILED"
INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
API_NOT_WHITELISTED = "API_NOT_WHITELISTED"

INSUFFICIENT_LIQUIDITY_CODE = "82000"


def classify_failed_order(record: OrderRecord) -> ClassifiedError:
    """Classify an order that reached the Failed state."""
    reason = getattr(record, "fail_reason", None)
    return ClassifiedError(
        kind=TRANSACTION_FAILED,
        message=reason or "Unknown reason",
        action="Try again or contact support",
    )


def _classify_api_error(exc: ApiError) -> ClassifiedError:
    if exc.code == INSUFFICIENT_LIQUIDITY_CODE:
        return ClassifiedError(
            kind=INSUFFICIENT_LIQUIDITY,
            message=exc.message,
            action="Increase the swap amount or try a different token pair",
        )
    if "whitelist" in (exc.message or "").lower():
        return ClassifiedError(
            kind=API_NOT_WHITELISTED,
            message=exc.message,
            action="Add this endpoint to your API key whitelist in the developer portal",
        )
    return ClassifiedError(
        kind="API_ERROR",
        message=f"{exc.code}: {exc.message}",
        action="Check the request parameters",
    )


def classify_exception(exc: BaseException) -> ClassifiedError:
    """Classify any exception raised by the pipeline."""
    if isinstance(exc, TransactionFailed):
        return exc.classified
    if isinstance(exc, ApiError):
        return _classify_api_error(exc)
    if isinstance(exc, ConfigError):
        return ClassifiedError("CONFIG_ERROR", str(exc), "Check credentials and wallet settings")
    if isinstance(exc, NetworkError):
        return ClassifiedError("NETWORK_ERROR", str(exc), "Check connectivity and retry")
    if isinstance(exc, SimulationFailure):
        return ClassifiedError(
            "SIMULATION_FAILED",
            exc.reason,
            "Transaction would fail, adjust amount or slippage before retrying",
        )
    if isinstance(exc, SigningError):
        return ClassifiedError("SIGNING_ERROR", str(exc), "Check the quote and chain data")
    if isinstance(exc, BroadcastFailure):
        if exc.may_have_been_sent:
            return ClassifiedError(
                "BROADCAST_FAILED",
                str(exc),
                f"The gateway may have relayed the transaction, check {exc.tx_hash or 'its hash'} "
                "on the explorer before resubmitting",
            )
        return ClassifiedError(
            "BROADCAST_FAILED",
            str(exc),
            "Resubmit with a fresh nonce",
        )
    if isinstance(exc, TrackingTimeout):
        return ClassifiedError(
            "TRACKING_TIMEOUT",
            str(exc),
            "Check the transaction on the explorer before resubmitting",
        )
    if isinstance(exc, TrackingCancelled):
        return ClassifiedError("TRACKING_CANCELLED", str(exc) or "Tracking cancelled", "Check status later")
    if isinstance(exc, LockTimeoutError):
        return ClassifiedError("WALLET_BUSY", str(exc), "Wait for the pending swap to finish")
    if isinstance(exc, ValueError):
        return ClassifiedError("INVALID_REQUEST", str(exc), "Check the swap amount and slippage")
    return ClassifiedError("UNKNOWN_ERROR", str(exc) or type(exc).__name__, "Try again or contact support")
