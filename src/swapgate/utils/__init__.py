"""Utility modules."""

from swapgate.utils.locks import (
    WalletNonceLock,
    clear_wallet_locks,
    get_wallet_lock,
    wallet_nonce_lock,
)

__all__ = [
    "WalletNonceLock",
    "clear_wallet_locks",
    "get_wallet_lock",
    "wallet_nonce_lock",
]
