"""Concurrency control for wallet nonce acquisition.

Provides per-wallet locking so that concurrent swaps sharing one wallet fetch
a nonce, sign and broadcast one at a time.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from swapgate.errors import LockTimeoutError

logger = logging.getLogger(__name__)

# Global lock registry: lowercased wallet address -> asyncio.Lock
_wallet_locks: dict[str, asyncio.Lock] = {}


def _wallet_key(wallet_address: str) -> str:
    return wallet_address.lower()


async def get_wallet_lock(wallet_address: str) -> asyncio.Lock:
    """Get or create the lock for a wallet.

    Addresses are compared case-insensitively, so checksummed and lowercase
    forms share one lock.
    """
    key = _wallet_key(wallet_address)
    if key not in _wallet_locks:
        _wallet_locks[key] = asyncio.Lock()
    return _wallet_locks[key]


class WalletNonceLock:
    """Context manager for exclusive use of a wallet's next nonce.

    Hold it from the nonce fetch until the signed transaction is broadcast.

    Example:
        async with WalletNonceLock(address, operation="swap"):
            nonce = await chain_state.get_nonce(address)
            ...
            await broadcaster.broadcast(signed, chain_index, address)
    """

    def __init__(
        self,
        wallet_address: str,
        timeout: Optional[float] = 60.0,
        operation: str = "nonce",
    ):
        """Initialize the lock.

        Args:
            wallet_address: Wallet whose nonce is being used
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.wallet_address = wallet_address
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "WalletNonceLock":
        """Acquire the lock."""
        self._lock = await get_wallet_lock(self.wallet_address)

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
            self._acquired = True
        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for wallet {self.wallet_address} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire nonce lock for wallet {self.wallet_address} within {self.timeout}s"
            )

        logger.debug(f"Lock acquired for wallet {self.wallet_address}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for wallet {self.wallet_address}: {self.operation}")
        return False


@asynccontextmanager
async def wallet_nonce_lock(
    wallet_address: str,
    timeout: Optional[float] = 60.0,
    operation: str = "nonce",
):
    """Functional form of WalletNonceLock.

    Example:
        async with wallet_nonce_lock(address, operation="approve"):
            pass
    """
    async with WalletNonceLock(wallet_address, timeout=timeout, operation=operation):
        yield


def is_wallet_locked(wallet_address: str) -> bool:
    lock = _wallet_locks.get(_wallet_key(wallet_address))
    return lock is not None and lock.locked()


def clear_wallet_locks() -> None:
    """Clear all wallet locks (useful for testing)."""
    _wallet_locks.clear()
