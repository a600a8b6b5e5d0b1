"""Swap execution pipeline.

Provides:
- SwapExecutor: quote, sign, broadcast and track a swap
- TransactionBuilder / TransactionSigner: offline transaction signing
- Broadcaster: gateway submission with RPC fallback
- OrderTracker: order status polling
"""

from swapgate.swap.broadcaster import Broadcaster
from swapgate.swap.builder import TransactionBuilder
from swapgate.swap.chain_state import ChainState
from swapgate.swap.classifier import classify_exception, classify_failed_order
from swapgate.swap.executor import SwapExecutor
from swapgate.swap.gas import GasEstimator, TransactionSimulator
from swapgate.swap.models import SwapResult, TrackingResult, TrackingState
from swapgate.swap.signer import TransactionSigner
from swapgate.swap.tracker import OrderTracker

__all__ = [
    # Executor
    "SwapExecutor",
    "SwapResult",
    # Stages
    "Broadcaster",
    "ChainState",
    "GasEstimator",
    "OrderTracker",
    "TransactionBuilder",
    "TransactionSigner",
    "TransactionSimulator",
    "TrackingResult",
    "TrackingState",
    # Classification
    "classify_exception",
    "classify_failed_order",
]
