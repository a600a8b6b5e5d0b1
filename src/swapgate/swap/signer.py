"""Offline transaction signer.

Signs with an in-memory private key through eth_account. No network access:
the chain id comes from the unsigned transaction. ECDSA signatures are
deterministic (RFC 6979), so the same transaction and key always produce the
same raw bytes.

WARNING: The private key is held in memory. Keep balances on this wallet small.
"""

import logging

from eth_account import Account
from web3 import Web3

from swapgate.errors import ConfigError, SigningError
from swapgate.swap.models import SignedTransaction, UnsignedTransaction

logger = logging.getLogger(__name__)


class TransactionSigner:
    """Signs transactions for one wallet."""

    def __init__(self, private_key: str):
        if not private_key:
            raise ConfigError("Missing EVM_PRIVATE_KEY")
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid private key: {type(e).__name__}")

    @property
    def address(self) -> str:
        """Checksummed wallet address."""
        return self._account.address

    def sign(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        """Sign and serialize a transaction.

        Raises:
            SigningError: If the transaction is not ours or cannot be signed
        """
        if unsigned.from_address.lower() != self.address.lower():
            raise SigningError(
                f"Transaction sender {unsigned.from_address} does not match wallet {self.address}"
            )

        try:
            signed = self._account.sign_transaction(unsigned.to_tx_params())
        except (TypeError, ValueError) as e:
            raise SigningError(f"Failed to sign transaction: {e}") from e

        result = SignedTransaction(
            raw_transaction_hex=Web3.to_hex(signed.raw_transaction),
            transaction_hash=Web3.to_hex(signed.hash),
        )
        logger.info(f"Transaction signed: {result.transaction_hash} (nonce {unsigned.nonce})")
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"
