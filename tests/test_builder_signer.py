"""Tests for transaction building and offline signing."""

import pytest
from eth_account import Account

from swapgate.errors import ConfigError, SigningError
from swapgate.routing.base import SwapTx
from swapgate.swap.builder import (
    MAX_UINT256,
    TransactionBuilder,
    encode_allowance,
    encode_approve,
    to_int,
)
from swapgate.swap.models import TX_TYPE_EIP1559, TX_TYPE_LEGACY, FeeData
from swapgate.swap.signer import TransactionSigner

from tests.conftest import APPROVE_SPENDER, ROUTER, TEST_PRIVATE_KEY, TEST_WALLET

EIP1559_FEES = FeeData(max_fee_per_gas=42_000_000_000, max_priority_fee_per_gas=2_500_000_000)
LEGACY_FEES = FeeData(gas_price=5_000_000_000)


def _swap_tx(**overrides) -> SwapTx:
    fields = {
        "from_address": TEST_WALLET.lower(),
        "to": ROUTER.lower(),
        "data": "0xabcdef",
        "value": "0x0",
    }
    fields.update(overrides)
    return SwapTx(**fields)


class TestToInt:
    """Tests for numeric field parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [(21000, 21000), ("21000", 21000), ("0x5208", 21000), ("0X5208", 21000), ("0x0", 0)],
    )
    def test_parses(self, value, expected):
        assert to_int(value, "gas") == expected

    @pytest.mark.parametrize("value", [None, "", "1.5", "0xzz", "-1", True])
    def test_rejects(self, value):
        with pytest.raises(SigningError):
            to_int(value, "gas")


class TestTransactionBuilder:
    """Tests for TransactionBuilder."""

    def test_builds_eip1559(self):
        unsigned = TransactionBuilder().build(_swap_tx(), 210000, 7, EIP1559_FEES, 1)
        params = unsigned.to_tx_params()

        assert unsigned.tx_type == TX_TYPE_EIP1559
        assert params["type"] == TX_TYPE_EIP1559
        assert params["maxFeePerGas"] == 42_000_000_000
        assert params["maxPriorityFeePerGas"] == 2_500_000_000
        assert params["gas"] == 210000
        assert params["nonce"] == 7
        assert params["value"] == 0
        assert params["chainId"] == 1
        assert params["to"] == ROUTER
        assert "gasPrice" not in params

    def test_falls_back_to_legacy(self):
        unsigned = TransactionBuilder().build(_swap_tx(), "210000", "0x7", LEGACY_FEES, "1")
        params = unsigned.to_tx_params()

        assert unsigned.tx_type == TX_TYPE_LEGACY
        assert params["gasPrice"] == 5_000_000_000
        assert "maxFeePerGas" not in params
        assert "maxPriorityFeePerGas" not in params

    def test_legacy_uses_router_gas_price_when_node_has_none(self):
        unsigned = TransactionBuilder().build(_swap_tx(gas_price="20000000000"), 21000, 0, FeeData(), 1)

        assert unsigned.to_tx_params()["gasPrice"] == 20_000_000_000

    @pytest.mark.parametrize("fees", [EIP1559_FEES, LEGACY_FEES])
    def test_never_both_fee_modes(self, fees):
        params = TransactionBuilder().build(_swap_tx(gas_price="1"), 21000, 0, fees, 1).to_tx_params()

        assert not ("gasPrice" in params and "maxFeePerGas" in params)

    def test_no_fee_data_raises(self):
        with pytest.raises(SigningError):
            TransactionBuilder().build(_swap_tx(), 21000, 0, FeeData(), 1)

    def test_missing_gas_limit_raises(self):
        with pytest.raises(SigningError):
            TransactionBuilder().build(_swap_tx(), None, 0, EIP1559_FEES, 1)

    def test_bad_value_raises(self):
        with pytest.raises(SigningError):
            TransactionBuilder().build(_swap_tx(value="lots"), 21000, 0, EIP1559_FEES, 1)

    def test_missing_to_raises(self):
        with pytest.raises(SigningError):
            TransactionBuilder().build(_swap_tx(to=""), 21000, 0, EIP1559_FEES, 1)


class TestCalldata:
    """Tests for ERC-20 calldata encoding."""

    def test_encode_approve_unlimited(self):
        data = encode_approve(APPROVE_SPENDER)

        assert data.startswith("0x095ea7b3")
        assert len(data) == 2 + 8 + 64 + 64
        assert data.endswith(hex(MAX_UINT256)[2:])
        assert APPROVE_SPENDER.lower()[2:] in data

    def test_encode_approve_amount(self):
        assert encode_approve(APPROVE_SPENDER, 255).endswith("0" * 62 + "ff")

    def test_encode_allowance(self):
        data = encode_allowance(TEST_WALLET, APPROVE_SPENDER)

        assert data.startswith("0xdd62ed3e")
        assert len(data) == 2 + 8 + 64 + 64


class TestTransactionSigner:
    """Tests for TransactionSigner."""

    def test_address_from_key(self):
        assert TransactionSigner(TEST_PRIVATE_KEY).address == TEST_WALLET

    def test_sign_produces_0x_raw_hex(self):
        unsigned = TransactionBuilder().build(_swap_tx(), 210000, 0, EIP1559_FEES, 1)

        signed = TransactionSigner(TEST_PRIVATE_KEY).sign(unsigned)

        assert signed.raw_transaction_hex.startswith("0x02")
        assert signed.transaction_hash.startswith("0x")
        assert len(signed.transaction_hash) == 66

    def test_signing_is_deterministic(self):
        unsigned = TransactionBuilder().build(_swap_tx(), 210000, 3, EIP1559_FEES, 1)
        signer = TransactionSigner(TEST_PRIVATE_KEY)

        first = signer.sign(unsigned)
        second = signer.sign(unsigned)

        assert first.raw_transaction_hex == second.raw_transaction_hex
        assert first.transaction_hash == second.transaction_hash

    def test_signed_transaction_recovers_sender(self):
        unsigned = TransactionBuilder().build(_swap_tx(), 210000, 3, LEGACY_FEES, 1)

        signed = TransactionSigner(TEST_PRIVATE_KEY).sign(unsigned)

        assert Account.recover_transaction(signed.raw_transaction_hex) == TEST_WALLET

    def test_chain_id_changes_signature(self):
        signer = TransactionSigner(TEST_PRIVATE_KEY)
        mainnet = signer.sign(TransactionBuilder().build(_swap_tx(), 21000, 0, EIP1559_FEES, 1))
        bsc = signer.sign(TransactionBuilder().build(_swap_tx(), 21000, 0, EIP1559_FEES, 56))

        assert mainnet.raw_transaction_hex != bsc.raw_transaction_hex

    def test_rejects_foreign_sender(self):
        unsigned = TransactionBuilder().build(
            _swap_tx(from_address=ROUTER), 21000, 0, EIP1559_FEES, 1
        )

        with pytest.raises(SigningError):
            TransactionSigner(TEST_PRIVATE_KEY).sign(unsigned)

    @pytest.mark.parametrize("key", ["", "0x1234"])
    def test_invalid_key(self, key):
        with pytest.raises(ConfigError):
            TransactionSigner(key)
