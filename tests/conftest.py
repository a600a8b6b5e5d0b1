"""Pytest configuration and fixtures.

Gateway and RPC traffic goes through ``httpx.MockTransport`` stubs so the
real clients (signing, envelope handling, JSON-RPC framing) are exercised.
"""

import json
import re
from typing import Any

import httpx
import pytest
import pytest_asyncio

from swapgate.config import Settings
from swapgate.gateway.auth import AuthSigner
from swapgate.gateway.client import GatewayClient
from swapgate.http import create_http_client
from swapgate.swap.chain_state import ChainState
from swapgate.utils.locks import clear_wallet_locks

# Well-known development key (hardhat account #0). Never funded on mainnet.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a4b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_WALLET = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

NATIVE = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
ROUTER = "0x7D0CcAa3Fac1e5A943c5168b6CEd828691b46B36"
APPROVE_SPENDER = "0x40aA958dd87FC8305b97f2BA922CDdCa374bcD7f"

_PREFIX = re.compile(r"^/api/v\d+/")


def okx(data: Any = None, code: str = "0", msg: str = "") -> dict:
    """Gateway response envelope."""
    return {"code": code, "msg": msg, "data": [] if data is None else data}


class RpcErrorReply:
    """Marks a stubbed JSON-RPC error reply."""

    def __init__(self, code: int = -32000, message: str = "rpc error"):
        self.code = code
        self.message = message


class _ReplyQueue:
    """Replies for one route: consumed in order, the last one repeats."""

    def __init__(self, replies):
        self.replies = list(replies)

    def next(self):
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class GatewayStub:
    """Fake gateway keyed by endpoint (path without the /api/vN/ prefix)."""

    def __init__(self):
        self.routes: dict[str, _ReplyQueue] = {}
        self.requests: list[httpx.Request] = []

    def add(self, endpoint: str, *replies) -> None:
        """Register replies: envelope dicts, httpx.Response or exceptions."""
        self.routes[endpoint] = _ReplyQueue(replies)

    def calls(self, endpoint: str) -> list[httpx.Request]:
        return [r for r in self.requests if _PREFIX.sub("", r.url.path) == endpoint]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = _PREFIX.sub("", request.url.path)
        if endpoint not in self.routes:
            return httpx.Response(404, text=f"no route for {endpoint}")
        reply = self.routes[endpoint].next()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)


class RpcStub:
    """Fake JSON-RPC node keyed by method name."""

    def __init__(self):
        self.routes: dict[str, _ReplyQueue] = {}
        self.requests: list[dict] = []

    def add(self, method: str, *replies) -> None:
        """Register results (or RpcErrorReply / exceptions) for a method."""
        self.routes[method] = _ReplyQueue(replies)

    def calls(self, method: str) -> list[dict]:
        return [r for r in self.requests if r["method"] == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        method = payload["method"]
        if method not in self.routes:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32601, "message": "method not found"}},
            )
        reply = self.routes[method].next()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, RpcErrorReply):
            body = {"jsonrpc": "2.0", "id": payload["id"], "error": {"code": reply.code, "message": reply.message}}
        else:
            body = {"jsonrpc": "2.0", "id": payload["id"], "result": reply}
        return httpx.Response(200, json=body)


@pytest.fixture(autouse=True)
def _clear_locks():
    """Wallet locks are module-global; start every test clean."""
    clear_wallet_locks()
    yield
    clear_wallet_locks()


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials, ignoring any local .env file."""
    return Settings(
        _env_file=None,
        okx_api_key="test-api-key",
        okx_secret_key="test-secret",
        okx_api_passphrase="test-passphrase",
        okx_project_id="test-project",
        evm_wallet_address=TEST_WALLET,
        evm_private_key=TEST_PRIVATE_KEY,
        evm_rpc_url="https://rpc.test",
        chain_index="1",
        poll_interval=0.01,
        tracking_timeout=1.0,
    )


@pytest.fixture
def auth_signer(settings) -> AuthSigner:
    return AuthSigner.from_settings(settings)


@pytest.fixture
def gateway_stub() -> GatewayStub:
    return GatewayStub()


@pytest.fixture
def rpc_stub() -> RpcStub:
    return RpcStub()


@pytest_asyncio.fixture
async def gateway_http(gateway_stub):
    client = create_http_client(transport=httpx.MockTransport(gateway_stub.handler))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def rpc_http(rpc_stub):
    client = create_http_client(transport=httpx.MockTransport(rpc_stub.handler))
    yield client
    await client.aclose()


@pytest.fixture
def gateway(settings, gateway_http) -> GatewayClient:
    return GatewayClient.from_settings(settings, http_client=gateway_http)


@pytest.fixture
def chain_state(settings, rpc_http) -> ChainState:
    return ChainState.from_settings(settings, http_client=rpc_http)


def swap_item(
    from_address: str = TEST_WALLET,
    value: str = "0x0",
    to_amount: str = "250123",
    data: str = "0xf2c42696000000000000000000000000000000000000000000000000000000000000002a",
) -> dict:
    """One element of the swap endpoint's ``data`` list (v6 shape)."""
    return {
        "routerResult": {
            "chainIndex": "1",
            "fromTokenAmount": "100000000000000",
            "toTokenAmount": to_amount,
            "fromToken": {"tokenContractAddress": NATIVE, "decimal": "18"},
            "toToken": {"tokenContractAddress": USDC, "decimal": "6"},
            "dexRouterList": [{"router": "Uniswap V3"}],
        },
        "tx": {
            "from": from_address,
            "to": ROUTER,
            "data": data,
            "value": value,
            "gas": "180000",
            "gasPrice": "20000000000",
        },
    }
