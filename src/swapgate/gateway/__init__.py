"""OKX DEX gateway access: request signing and the envelope-aware client."""

from swapgate.gateway.auth import AuthSigner
from swapgate.gateway.client import GatewayClient

__all__ = ["AuthSigner", "GatewayClient"]
