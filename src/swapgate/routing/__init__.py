"""Routing module: swap requests, quotes and the aggregator quote service."""

from swapgate.routing.base import ChainInfo, Quote, SwapRequest, SwapTx
from swapgate.routing.quote_service import QuoteService

__all__ = [
    "ChainInfo",
    "Quote",
    "QuoteService",
    "SwapRequest",
    "SwapTx",
]
