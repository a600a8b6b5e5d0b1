"""Tests for gateway request authentication."""

import base64
import hashlib
import hmac
from datetime import datetime, timezone

import pytest

from swapgate.errors import ConfigError
from swapgate.gateway.auth import AuthSigner

TS = "2025-03-01T12:30:45Z"
PATH = "/api/v6/dex/aggregator/swap"
QUERY = "?chainIndex=1&amount=100000000000000"


class TestAuthSigner:
    """Tests for AuthSigner."""

    def test_signature_matches_hmac_definition(self, auth_signer):
        """Signature is base64(HMAC-SHA256(secret, ts + METHOD + path + payload))."""
        expected = base64.b64encode(
            hmac.new(b"test-secret", f"{TS}GET{PATH}{QUERY}".encode(), hashlib.sha256).digest()
        ).decode()

        assert auth_signer.sign(TS, "GET", PATH, QUERY) == expected

    def test_signature_is_reproducible(self, auth_signer):
        assert auth_signer.sign(TS, "POST", PATH, '{"a":1}') == auth_signer.sign(TS, "POST", PATH, '{"a":1}')

    @pytest.mark.parametrize(
        "args",
        [
            ("2025-03-01T12:30:46Z", "GET", PATH, QUERY),
            (TS, "PUT", PATH, QUERY),
            (TS, "GET", PATH + "x", QUERY),
            (TS, "GET", PATH, QUERY + "0"),
        ],
    )
    def test_single_character_change_changes_signature(self, auth_signer, args):
        base = auth_signer.sign(TS, "GET", PATH, QUERY)
        assert auth_signer.sign(*args) != base

    def test_method_is_uppercased(self, auth_signer):
        assert auth_signer.sign(TS, "get", PATH, QUERY) == auth_signer.sign(TS, "GET", PATH, QUERY)

    def test_headers_contain_all_fields(self, auth_signer):
        headers = auth_signer.headers(TS, "GET", PATH, QUERY)

        assert headers["OK-ACCESS-KEY"] == "test-api-key"
        assert headers["OK-ACCESS-PASSPHRASE"] == "test-passphrase"
        assert headers["OK-ACCESS-PROJECT"] == "test-project"
        assert headers["OK-ACCESS-TIMESTAMP"] == TS
        assert headers["OK-ACCESS-SIGN"] == auth_signer.sign(TS, "GET", PATH, QUERY)

    def test_timestamp_is_second_resolution_with_z(self):
        now = datetime(2025, 3, 1, 12, 30, 45, 987654, tzinfo=timezone.utc)
        assert AuthSigner.timestamp(now) == "2025-03-01T12:30:45Z"

    def test_timestamp_defaults_to_now(self):
        ts = AuthSigner.timestamp()
        assert ts.endswith("Z")
        assert "." not in ts
        assert len(ts) == len("2025-03-01T12:30:45Z")

    @pytest.mark.parametrize("missing", ["api_key", "secret_key", "passphrase", "project_id"])
    def test_missing_credential_raises_config_error(self, missing):
        creds = {
            "api_key": "k",
            "secret_key": "s",
            "passphrase": "p",
            "project_id": "id",
        }
        creds[missing] = ""

        with pytest.raises(ConfigError):
            AuthSigner(**creds)

    def test_repr_masks_key(self, auth_signer):
        assert "test-api-key" not in repr(auth_signer)
        assert "test-secret" not in repr(auth_signer)
