"""Transaction builder for swap and approval calls.

Builds unsigned transactions from a router call, a gas limit and live chain
state. NO signing happens here.
"""

import logging
from typing import Any, Optional

from web3 import Web3

from swapgate.errors import SigningError
from swapgate.routing.base import SwapTx
from swapgate.swap.models import FeeData, UnsignedTransaction

logger = logging.getLogger(__name__)

# ERC-20 function selectors
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)

MAX_UINT256 = 2**256 - 1


def to_int(value: Any, field_name: str) -> int:
    """Parse an int, decimal string or 0x-hex string.

    Raises:
        SigningError: If the value is missing or not representable as hex
    """
    if value is None or value == "":
        raise SigningError(f"Missing required numeric field: {field_name}")
    if isinstance(value, bool):
        raise SigningError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            raise SigningError(f"{field_name} is not hex-representable: {value!r}")
    if parsed < 0:
        raise SigningError(f"{field_name} must be non-negative, got {parsed}")
    return parsed


def _pad_address(address: str) -> str:
    return address.lower().replace("0x", "").zfill(64)


def encode_approve(spender: str, amount: Optional[int] = None) -> str:
    """Calldata for ``approve(spender, amount)``; None means unlimited."""
    if amount is None:
        amount = MAX_UINT256
    amount_hex = hex(amount)[2:].zfill(64)
    return f"{ERC20_APPROVE_SELECTOR}{_pad_address(spender)}{amount_hex}"


def encode_allowance(owner: str, spender: str) -> str:
    """Calldata for ``allowance(owner, spender)``."""
    return f"{ERC20_ALLOWANCE_SELECTOR}{_pad_address(owner)}{_pad_address(spender)}"


class TransactionBuilder:
    """Assembles EIP-1559 (or legacy) transactions for offline signing."""

    def build(
        self,
        tx: SwapTx,
        gas_limit: Any,
        nonce: Any,
        fee_data: FeeData,
        chain_id: Any,
    ) -> UnsignedTransaction:
        """Build an unsigned transaction.

        Uses the fee-market pair when ``fee_data`` has it and falls back to a
        legacy gas price (from ``fee_data`` or the router call) otherwise.

        Raises:
            SigningError: If a required field is missing or malformed
        """
        if not tx.to:
            raise SigningError("Missing required field: to")
        if not tx.from_address:
            raise SigningError("Missing required field: from")

        try:
            to = Web3.to_checksum_address(tx.to)
            from_address = Web3.to_checksum_address(tx.from_address)
        except ValueError as e:
            raise SigningError(f"Invalid address: {e}")

        data = tx.data or "0x"
        if not data.startswith("0x"):
            data = f"0x{data}"

        fields = {
            "from_address": from_address,
            "to": to,
            "data": data,
            "value": to_int(tx.value or "0", "value"),
            "gas_limit": to_int(gas_limit, "gasLimit"),
            "nonce": to_int(nonce, "nonce"),
            "chain_id": to_int(chain_id, "chainId"),
        }

        if fee_data.supports_eip1559:
            unsigned = UnsignedTransaction(
                **fields,
                max_fee_per_gas=to_int(fee_data.max_fee_per_gas, "maxFeePerGas"),
                max_priority_fee_per_gas=to_int(
                    fee_data.max_priority_fee_per_gas, "maxPriorityFeePerGas"
                ),
            )
        else:
            gas_price = fee_data.gas_price if fee_data.gas_price is not None else tx.gas_price
            if gas_price is None:
                raise SigningError("No fee data: need maxFeePerGas/maxPriorityFeePerGas or gasPrice")
            logger.warning("Fee market data unavailable, building legacy gasPrice transaction")
            unsigned = UnsignedTransaction(**fields, gas_price=to_int(gas_price, "gasPrice"))

        logger.debug(f"Transaction params for signing: {unsigned.to_tx_params()}")
        return unsigned
