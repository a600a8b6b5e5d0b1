"""EVM chain registry keyed by gateway chain index.

The gateway identifies chains by ``chainIndex``; on EVM networks this equals
the EIP-155 chain id used for signing.
"""

from dataclasses import dataclass
from typing import Optional

# Placeholder address the gateway uses for a chain's native coin
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# OKX web3 explorer
EXPLORER_BASE_URL = "https://web3.okx.com/explorer"


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for an EVM chain reachable through the gateway."""

    name: str
    symbol: str
    chain_index: str
    explorer_slug: str
    usdt_address: Optional[str] = None
    usdc_address: Optional[str] = None


# ======================
# Chain Configurations
# ======================

CHAINS: dict[str, ChainConfig] = {
    "1": ChainConfig(
        name="Ethereum",
        symbol="ETH",
        chain_index="1",
        explorer_slug="ethereum",
        usdt_address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
        usdc_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    ),
    "56": ChainConfig(
        name="BNB Smart Chain",
        symbol="BNB",
        chain_index="56",
        explorer_slug="bsc",
        usdt_address="0x55d398326f99059fF775485246999027B3197955",
        usdc_address="0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d",
    ),
    "137": ChainConfig(
        name="Polygon",
        symbol="POL",
        chain_index="137",
        explorer_slug="polygon",
        usdt_address="0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
        usdc_address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
    ),
    "42161": ChainConfig(
        name="Arbitrum One",
        symbol="ETH",
        chain_index="42161",
        explorer_slug="arbitrum",
        usdt_address="0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
        usdc_address="0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
    ),
    "10": ChainConfig(
        name="Optimism",
        symbol="ETH",
        chain_index="10",
        explorer_slug="optimism",
        usdt_address="0x94b008aA00579c1307B0EF2c499aD98a8ce58e58",
        usdc_address="0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
    ),
    "43114": ChainConfig(
        name="Avalanche C-Chain",
        symbol="AVAX",
        chain_index="43114",
        explorer_slug="avax",
        usdt_address="0x9702230A8Ea53601f5cD2dc00fDBc13d4dF4A8c7",
        usdc_address="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
    ),
    "8453": ChainConfig(
        name="Base",
        symbol="ETH",
        chain_index="8453",
        explorer_slug="base",
        usdc_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    ),
}


# ======================
# Helper Functions
# ======================

def get_chain(chain_index: str) -> Optional[ChainConfig]:
    """Get chain configuration by gateway chain index."""
    return CHAINS.get(str(chain_index))


def is_native_token(token_address: str) -> bool:
    """Check whether an address is the gateway's native-coin placeholder."""
    return token_address.lower() == NATIVE_TOKEN_ADDRESS.lower()


def build_explorer_url(chain_index: str, tx_hash: str) -> str:
    """Explorer link for a transaction hash.

    Unknown chain indexes fall back to the raw index as the path segment.
    """
    chain = get_chain(chain_index)
    slug = chain.explorer_slug if chain else str(chain_index)
    return f"{EXPLORER_BASE_URL}/{slug}/tx/{tx_hash}"


def get_stablecoin_address(chain_index: str, stablecoin: str) -> Optional[str]:
    """Get stablecoin contract address on a chain.

    Args:
        chain_index: Gateway chain index ("1", "56", ...)
        stablecoin: USDT or USDC
    """
    chain = get_chain(chain_index)
    if not chain:
        return None

    if stablecoin.upper() == "USDT":
        return chain.usdt_address
    elif stablecoin.upper() == "USDC":
        return chain.usdc_address
    return None
