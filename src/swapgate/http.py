"""Shared httpx client construction."""

from typing import Optional

import httpx


def create_http_client(
    timeout: float = 30.0,
    proxy: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient for gateway and RPC traffic.

    Args:
        timeout: Per-request timeout in seconds
        proxy: Optional proxy URL (e.g. http://127.0.0.1:7897)
        transport: Custom transport (tests pass an httpx.MockTransport)
    """
    kwargs = {"timeout": timeout}
    if transport is not None:
        kwargs["transport"] = transport
    elif proxy:
        kwargs["proxy"] = proxy
    return httpx.AsyncClient(**kwargs)
