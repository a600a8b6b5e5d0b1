"""Application configuration using pydantic-settings.

Settings are loaded once at the composition root and handed to every
component constructor. Nothing inside the pipeline reads the environment.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from swapgate.chains import NATIVE_TOKEN_ADDRESS
from swapgate.errors import ConfigError

# Query parameter carrying the slippage tolerance, per gateway API version
SLIPPAGE_PARAM_BY_VERSION = {
    "v5": "slippage",
    "v6": "slippagePercent",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Gateway credentials
    # ======================
    okx_api_key: str = Field(default="", description="OKX API key")
    okx_secret_key: str = Field(default="", description="OKX secret key (HMAC)")
    okx_api_passphrase: str = Field(default="", description="OKX API passphrase")
    okx_project_id: str = Field(default="", description="OKX developer project ID")

    # ======================
    # Gateway
    # ======================
    api_base_url: str = Field(default="https://web3.okx.com", description="Gateway host")
    api_version: Literal["v5", "v6"] = Field(default="v6", description="Gateway API version")
    http_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    proxy_url: Optional[str] = Field(
        default=None, description="Optional HTTP(S) proxy for gateway and RPC calls"
    )

    # ======================
    # Wallet / chain
    # ======================
    evm_wallet_address: str = Field(default="", description="Wallet address used for swaps")
    evm_private_key: str = Field(default="", description="Wallet private key (hex)")
    evm_rpc_url: str = Field(default="https://eth.llamarpc.com", description="EVM JSON-RPC URL")
    chain_index: str = Field(default="1", description="Gateway chain index (1 = Ethereum)")

    # ======================
    # Execution
    # ======================
    swap_mode: Literal["simulate", "execute"] = Field(
        default="simulate", description="What the application runner does"
    )
    default_slippage_percent: str = Field(default="0.5", description="Default slippage (%)")
    simulate_before_broadcast: bool = Field(
        default=False, description="Run gateway simulation before signing"
    )
    rpc_fallback_enabled: bool = Field(
        default=True, description="Send through the RPC node when gateway broadcast fails"
    )
    default_priority_fee_gwei: float = Field(
        default=2.5, description="Priority fee used when the node cannot suggest one"
    )

    # ======================
    # Swap run by the application
    # ======================
    swap_from_token: str = Field(
        default=NATIVE_TOKEN_ADDRESS, description="Source token (native coin placeholder)"
    )
    swap_to_token: str = Field(
        default="", description="Destination token (empty = the chain's USDC)"
    )
    swap_amount: str = Field(default="100000000000000", description="Amount in base units")

    # ======================
    # Tracking
    # ======================
    poll_interval: float = Field(default=5.0, description="Order status poll interval (s)")
    tracking_timeout: float = Field(default=300.0, description="Order tracking deadline (s)")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def api_prefix(self) -> str:
        """Request path prefix, e.g. ``/api/v6/``."""
        return f"/api/{self.api_version}/"

    @property
    def slippage_param(self) -> str:
        """Name of the slippage query parameter for the configured API version."""
        return SLIPPAGE_PARAM_BY_VERSION[self.api_version]

    @property
    def chain_id(self) -> int:
        """EVM chain id used for signing (same number as the chain index on EVM)."""
        return int(self.chain_index)

    def missing_credentials(self) -> list[str]:
        """Names of gateway credentials that are not set."""
        required = {
            "OKX_API_KEY": self.okx_api_key,
            "OKX_SECRET_KEY": self.okx_secret_key,
            "OKX_API_PASSPHRASE": self.okx_api_passphrase,
            "OKX_PROJECT_ID": self.okx_project_id,
        }
        return [name for name, value in required.items() if not value]

    def require_wallet(self) -> None:
        """Raise ConfigError unless a wallet is configured."""
        missing = []
        if not self.evm_wallet_address:
            missing.append("EVM_WALLET_ADDRESS")
        if not self.evm_private_key:
            missing.append("EVM_PRIVATE_KEY")
        if missing:
            raise ConfigError(f"Missing wallet configuration: {', '.join(missing)}")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "swap_mode": self.swap_mode,
            "gateway": {
                "base_url": self.api_base_url,
                "api_version": self.api_version,
                "api_key": "***" if self.okx_api_key else "(not set)",
                "secret_key": "***" if self.okx_secret_key else "(not set)",
                "passphrase": "***" if self.okx_api_passphrase else "(not set)",
                "project_id": self.okx_project_id or "(not set)",
                "proxy": self._redact_url(self.proxy_url) if self.proxy_url else "(none)",
            },
            "wallet": {
                "address": self.evm_wallet_address or "(not set)",
                "private_key": "***" if self.evm_private_key else "(not set)",
            },
            "chain": {
                "chain_index": self.chain_index,
                "rpc": self._redact_url(self.evm_rpc_url),
            },
            "tracking": {
                "poll_interval": self.poll_interval,
                "timeout": self.tracking_timeout,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact credentials embedded in a URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
