"""Swap request and quote types."""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_INT_LITERAL = re.compile(r"[0-9]+")
_DECIMAL_LITERAL = re.compile(r"[0-9]+(\.[0-9]+)?")


def validate_amount(amount: str, allow_zero: bool = True) -> str:
    """Check a base-unit amount is an integer literal; return it unchanged."""
    amount = str(amount)
    if not _INT_LITERAL.fullmatch(amount):
        raise ValueError(f"Amount must be an integer literal in base units, got {amount!r}")
    if not allow_zero and int(amount) == 0:
        raise ValueError("Amount must be positive")
    return amount


def validate_slippage(slippage_percent: str) -> str:
    """Check slippage is a plain decimal literal in (0, 100]; return it unchanged."""
    slippage_percent = str(slippage_percent)
    if not _DECIMAL_LITERAL.fullmatch(slippage_percent):
        raise ValueError(f"Slippage must be a plain decimal number, got {slippage_percent!r}")
    if not (Decimal("0") < Decimal(slippage_percent) <= Decimal("100")):
        raise ValueError(f"Slippage must be in (0, 100], got {slippage_percent}")
    return slippage_percent


class SwapRequest(BaseModel):
    """A swap to execute. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    from_token_address: str = Field(..., description="Source token contract (or native placeholder)")
    to_token_address: str = Field(..., description="Destination token contract")
    amount: str = Field(..., description="Amount in base units (integer string)")
    slippage_percent: str = Field(default="0.5", description="Slippage tolerance in percent")
    chain_index: str = Field(default="1", description="Gateway chain index")

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, v):
        return validate_amount(v)

    @field_validator("slippage_percent", mode="before")
    @classmethod
    def _check_slippage(cls, v):
        return validate_slippage(v)

    @field_validator("chain_index", mode="before")
    @classmethod
    def _check_chain_index(cls, v):
        return str(v)


@dataclass(frozen=True)
class SwapTx:
    """Router call returned with a swap quote (``data[0].tx``)."""

    from_address: str
    to: str
    data: str
    value: str = "0"
    gas: Optional[str] = None
    gas_price: Optional[str] = None

    @classmethod
    def from_dict(cls, tx: dict) -> "SwapTx":
        return cls(
            from_address=tx.get("from", ""),
            to=tx.get("to", ""),
            data=tx.get("data", "0x"),
            value=str(tx.get("value") or "0"),
            gas=tx.get("gas"),
            gas_price=tx.get("gasPrice"),
        )


@dataclass(frozen=True)
class Quote:
    """A priced swap route from the aggregator.

    ``tx`` is None for price-only quotes.
    """

    to_token_amount: str
    to_token_decimal: int
    from_token_amount: Optional[str] = None
    tx: Optional[SwapTx] = None
    router_list: tuple = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def to_amount(self) -> Decimal:
        """Destination amount in whole tokens."""
        return Decimal(self.to_token_amount) / (Decimal(10) ** self.to_token_decimal)

    @property
    def route_description(self) -> str:
        """Human-readable router path."""
        names = []
        for hop in self.router_list:
            if isinstance(hop, dict):
                names.append(str(hop.get("router") or hop.get("dexName") or "?"))
            else:
                names.append(str(hop))
        return " -> ".join(names)

    @classmethod
    def from_gateway(cls, item: dict) -> "Quote":
        """Build from one element of the swap/quote endpoint's data list."""
        route = item.get("routerResult", item)
        to_token = route.get("toToken") or {}
        from_token = route.get("fromToken") or {}
        decimal = route.get("toTokenDecimal") or to_token.get("decimal") or 0
        router_list = route.get("routerList") or route.get("dexRouterList") or []
        tx = item.get("tx")
        return cls(
            to_token_amount=str(route.get("toTokenAmount", "0")),
            to_token_decimal=int(decimal),
            from_token_amount=route.get("fromTokenAmount") or from_token.get("amount"),
            tx=SwapTx.from_dict(tx) if tx else None,
            router_list=tuple(router_list),
            raw=item,
        )


@dataclass(frozen=True)
class ChainInfo:
    """Gateway chain metadata (supported/chain endpoint)."""

    chain_id: int
    chain_index: str
    chain_name: str
    dex_token_approve_address: Optional[str] = None

    @classmethod
    def from_gateway(cls, item: dict) -> "ChainInfo":
        return cls(
            chain_id=int(item.get("chainId") or item.get("chainIndex") or 0),
            chain_index=str(item.get("chainIndex") or item.get("chainId") or ""),
            chain_name=item.get("chainName", ""),
            dex_token_approve_address=item.get("dexTokenApproveAddress"),
        )
