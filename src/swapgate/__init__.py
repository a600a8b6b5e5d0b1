"""Swapgate - DEX aggregator swap execution through the OKX gateway."""

__version__ = "0.1.0"
