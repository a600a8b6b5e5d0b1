"""Request authentication for the OKX DEX gateway.

Every call carries five headers. The signature is

    base64(HMAC-SHA256(secret, timestamp + METHOD + request_path + payload))

where payload is the query string (with its leading ``?``) for GET and the
exact JSON body for POST.
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from swapgate.errors import ConfigError

logger = logging.getLogger(__name__)


class AuthSigner:
    """Builds per-request authentication headers from the API credentials."""

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        passphrase: str,
        project_id: str,
    ):
        missing = [
            name
            for name, value in (
                ("OKX_API_KEY", api_key),
                ("OKX_SECRET_KEY", secret_key),
                ("OKX_API_PASSPHRASE", passphrase),
                ("OKX_PROJECT_ID", project_id),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Missing required credentials for API authentication: {', '.join(missing)}"
            )

        self.api_key = api_key
        self._secret_key = secret_key
        self.passphrase = passphrase
        self.project_id = project_id

    @classmethod
    def from_settings(cls, settings) -> "AuthSigner":
        """Create a signer from a Settings instance."""
        return cls(
            api_key=settings.okx_api_key,
            secret_key=settings.okx_secret_key,
            passphrase=settings.okx_api_passphrase,
            project_id=settings.okx_project_id,
        )

    @staticmethod
    def timestamp(now: Optional[datetime] = None) -> str:
        """ISO-8601 UTC timestamp at second resolution, e.g. 2025-01-01T12:00:00Z."""
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        # Milliseconds are not accepted by the gateway
        return now.strftime("%Y-%m-%dT%H:%M:%S") + "Z"

    def sign(self, timestamp: str, method: str, request_path: str, payload: str = "") -> str:
        """Compute the base64 HMAC-SHA256 signature for a request."""
        message = f"{timestamp}{method.upper()}{request_path}{payload}"
        digest = hmac.new(
            self._secret_key.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest).decode("utf-8")

    def headers(
        self,
        timestamp: str,
        method: str,
        request_path: str,
        payload: str = "",
    ) -> dict[str, str]:
        """Full header set for one request."""
        return {
            "Content-Type": "application/json",
            "OK-ACCESS-KEY": self.api_key,
            "OK-ACCESS-SIGN": self.sign(timestamp, method, request_path, payload),
            "OK-ACCESS-TIMESTAMP": timestamp,
            "OK-ACCESS-PASSPHRASE": self.passphrase,
            "OK-ACCESS-PROJECT": self.project_id,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(api_key={self.api_key[:4]}***)"
