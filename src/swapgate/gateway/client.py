"""Authenticated REST client for the OKX DEX gateway.

All endpoints share one envelope: ``{"code": "0", "msg": "", "data": [...]}``.
A request succeeds only when ``code == "0"``.
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from swapgate.errors import ApiError, NetworkError
from swapgate.gateway.auth import AuthSigner
from swapgate.http import create_http_client

logger = logging.getLogger(__name__)


class GatewayClient:
    """Signs, sends and unwraps gateway requests.

    No retries happen here; callers decide what to do with ApiError and
    NetworkError.
    """

    def __init__(
        self,
        signer: AuthSigner,
        base_url: str = "https://web3.okx.com",
        api_prefix: str = "/api/v6/",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        proxy: Optional[str] = None,
    ):
        self.signer = signer
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix if api_prefix.endswith("/") else f"{api_prefix}/"
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._proxy = proxy

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "GatewayClient":
        """Create a client from a Settings instance."""
        return cls(
            signer=AuthSigner.from_settings(settings),
            base_url=settings.api_base_url,
            api_prefix=settings.api_prefix,
            http_client=http_client,
            timeout=settings.http_timeout,
            proxy=settings.proxy_url,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy load the HTTP client."""
        if self._client is None:
            self._client = create_http_client(self._timeout, self._proxy)
        return self._client

    def request_path(self, endpoint: str) -> str:
        """Signed request path, e.g. /api/v6/dex/aggregator/swap."""
        return f"{self.api_prefix}{endpoint.lstrip('/')}"

    async def get(self, endpoint: str, params: Optional[dict] = None) -> list:
        """GET an endpoint and return the envelope's data list."""
        query = "?" + urlencode(params) if params else ""
        return await self._request("GET", endpoint, query=query)

    async def post(self, endpoint: str, body: dict) -> list:
        """POST a JSON body and return the envelope's data list."""
        return await self._request("POST", endpoint, body=json.dumps(body, separators=(",", ":")))

    async def _request(
        self,
        method: str,
        endpoint: str,
        query: str = "",
        body: Optional[str] = None,
    ) -> list:
        path = self.request_path(endpoint)
        payload = query if method == "GET" else (body or "")
        headers = self.signer.headers(self.signer.timestamp(), method, path, payload)
        url = f"{self.base_url}{path}{query}"

        logger.debug(f"{method} {path}{query} body={body}")

        try:
            response = await self.client.request(method, url, headers=headers, content=body)
        except httpx.HTTPError as e:
            logger.warning(f"Gateway transport error on {endpoint}: {type(e).__name__}: {e}")
            raise NetworkError(f"{method} {endpoint} failed: {e}") from e

        return self._unwrap(endpoint, response)

    def _unwrap(self, endpoint: str, response: httpx.Response) -> list:
        """Validate the envelope and return ``data``."""
        try:
            envelope: Any = response.json()
        except ValueError:
            envelope = None

        if not isinstance(envelope, dict) or "code" not in envelope:
            if response.status_code >= 500:
                raise NetworkError(
                    f"{endpoint} returned HTTP {response.status_code}: {response.text[:200]}"
                )
            raise ApiError(
                str(response.status_code),
                f"Unexpected response: {response.text[:200]}",
                endpoint,
            )

        code = str(envelope.get("code"))
        if code != "0":
            message = envelope.get("msg") or "Unknown error"
            logger.warning(f"Gateway rejected {endpoint}: [{code}] {message}")
            raise ApiError(code, message, endpoint)

        data = envelope.get("data")
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return data

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
