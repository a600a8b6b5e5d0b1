"""Swap execution pipeline.

    quote -> (simulation) -> (ERC-20 approval) -> gas limit
          -> [wallet lock: nonce + fee data -> build -> sign -> broadcast]
          -> track

Every stage raises a typed error; ``execute_swap`` turns any of them into a
failed SwapResult with a classified error and suggested action.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from web3 import Web3

from swapgate.chains import get_chain, is_native_token
from swapgate.errors import (
    BroadcastFailure,
    ConfigError,
    SwapgateError,
    TrackingTimeout,
    TransactionFailed,
)
from swapgate.gateway.client import GatewayClient
from swapgate.routing.base import Quote, SwapRequest
from swapgate.routing.quote_service import QuoteService
from swapgate.swap.approval import TokenApprover
from swapgate.swap.broadcaster import Broadcaster
from swapgate.swap.builder import TransactionBuilder
from swapgate.swap.chain_state import ChainState
from swapgate.swap.classifier import classify_exception
from swapgate.swap.gas import GasEstimator, TransactionSimulator
from swapgate.swap.models import BroadcastOrder, SimulationReport, SwapResult
from swapgate.swap.signer import TransactionSigner
from swapgate.swap.tracker import OrderTracker
from swapgate.utils.locks import WalletNonceLock

logger = logging.getLogger(__name__)


@dataclass
class _SwapProgress:
    """What a swap attempt has produced so far, kept for failure reporting."""

    quote: Optional[Quote] = None
    approval_tx_hash: Optional[str] = None
    order: Optional[BroadcastOrder] = None


class SwapExecutor:
    """Runs swaps for one wallet on one chain."""

    def __init__(
        self,
        gateway: GatewayClient,
        chain_state: ChainState,
        quote_service: QuoteService,
        gas_estimator: GasEstimator,
        simulator: TransactionSimulator,
        builder: TransactionBuilder,
        signer: TransactionSigner,
        broadcaster: Broadcaster,
        tracker: OrderTracker,
        approver: TokenApprover,
        chain_index: str,
        chain_id: int,
        simulate_before_broadcast: bool = False,
    ):
        self.gateway = gateway
        self.chain_state = chain_state
        self.quote_service = quote_service
        self.gas_estimator = gas_estimator
        self.simulator = simulator
        self.builder = builder
        self.signer = signer
        self.broadcaster = broadcaster
        self.tracker = tracker
        self.approver = approver
        self.chain_index = str(chain_index)
        self.chain_id = chain_id
        self.simulate_before_broadcast = simulate_before_broadcast

    @classmethod
    def from_settings(
        cls,
        settings,
        gateway_http_client: Optional[httpx.AsyncClient] = None,
        rpc_http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SwapExecutor":
        """Wire every component from one Settings instance.

        Raises:
            ConfigError: Missing credentials, wallet, or a key that does not
                match the configured wallet address
        """
        settings.require_wallet()
        signer = TransactionSigner(settings.evm_private_key)
        if signer.address.lower() != settings.evm_wallet_address.lower():
            raise ConfigError(
                f"EVM_PRIVATE_KEY belongs to {signer.address}, not {settings.evm_wallet_address}"
            )

        gateway = GatewayClient.from_settings(settings, http_client=gateway_http_client)
        chain_state = ChainState.from_settings(settings, http_client=rpc_http_client)
        chain_index = settings.chain_index
        chain_id = settings.chain_id

        gas_estimator = GasEstimator(gateway, chain_index)
        builder = TransactionBuilder()
        broadcaster = Broadcaster(gateway, chain_state, settings.rpc_fallback_enabled)
        tracker = OrderTracker(
            gateway,
            chain_state,
            poll_interval=settings.poll_interval,
            timeout=settings.tracking_timeout,
        )
        approver = TokenApprover(
            chain_state, gas_estimator, builder, signer, broadcaster, tracker, chain_index, chain_id
        )

        return cls(
            gateway=gateway,
            chain_state=chain_state,
            quote_service=QuoteService(
                gateway, chain_index, signer.address, slippage_param=settings.slippage_param
            ),
            gas_estimator=gas_estimator,
            simulator=TransactionSimulator(gateway, chain_index),
            builder=builder,
            signer=signer,
            broadcaster=broadcaster,
            tracker=tracker,
            approver=approver,
            chain_index=chain_index,
            chain_id=chain_id,
            simulate_before_broadcast=settings.simulate_before_broadcast,
        )

    @property
    def wallet_address(self) -> str:
        return self.signer.address

    def _check_request(self, request: SwapRequest) -> None:
        if request.chain_index != self.chain_index:
            raise ConfigError(
                f"Request is for chain {request.chain_index}, executor is configured for {self.chain_index}"
            )

    async def execute_swap(
        self,
        request: SwapRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SwapResult:
        """Execute a swap and wait for its on-chain outcome.

        Never raises for pipeline failures: they come back as a failed
        SwapResult carrying the classified error.
        """
        progress = _SwapProgress()
        try:
            return await self._execute(request, progress, cancel_event)
        except (SwapgateError, ValueError) as e:
            classified = classify_exception(e)
            logger.error(f"Swap failed [{classified.kind}]: {classified.message}")
            logger.info(f"Suggested action: {classified.action}")

            order = progress.order
            tx_hash = order.tx_hash if order else None
            status = "failed"
            if isinstance(e, TransactionFailed):
                tx_hash = e.tx_hash or tx_hash
            elif isinstance(e, BroadcastFailure) and e.may_have_been_sent:
                tx_hash = e.tx_hash
            elif isinstance(e, TrackingTimeout):
                status = "timed_out"

            return SwapResult(
                success=False,
                order_id=order.order_id if order else None,
                tx_hash=tx_hash,
                channel=order.channel if order else None,
                quote=progress.quote,
                approval_tx_hash=progress.approval_tx_hash,
                error=classified.message,
                error_kind=classified.kind,
                action=classified.action,
                status=status,
            )

    async def _execute(
        self,
        request: SwapRequest,
        progress: _SwapProgress,
        cancel_event: Optional[asyncio.Event],
    ) -> SwapResult:
        self._check_request(request)
        wallet = self.wallet_address
        logger.info(
            f"Starting swap: {request.amount} {request.from_token_address} -> "
            f"{request.to_token_address} on chain {self.chain_index}"
        )

        quote = await self.quote_service.get_swap_data(
            request.from_token_address,
            request.to_token_address,
            request.amount,
            request.slippage_percent,
        )
        progress.quote = quote

        if self.simulate_before_broadcast:
            await self.simulator.simulate(quote)

        if not is_native_token(request.from_token_address):
            chain_info = await self.quote_service.get_chain_info()
            progress.approval_tx_hash = await self.approver.ensure_allowance(
                request.from_token_address,
                chain_info.dex_token_approve_address,
                request.amount,
            )

        tx = quote.tx
        gas_limit = await self.gas_estimator.get_gas_limit(tx.from_address, tx.to, tx.value, tx.data)

        # Nonce and fees are read under the lock, immediately before signing
        async with WalletNonceLock(wallet, operation="swap"):
            nonce = await self.chain_state.get_nonce(wallet)
            fee_data = await self.chain_state.get_fee_data()
            unsigned = self.builder.build(tx, gas_limit, nonce, fee_data, self.chain_id)
            signed = self.signer.sign(unsigned)
            progress.order = await self.broadcaster.broadcast(signed, self.chain_index, wallet)

        tracking = await self.tracker.track(progress.order, cancel_event=cancel_event)
        return SwapResult(
            success=True,
            order_id=progress.order.order_id,
            tx_hash=tracking.tx_hash,
            explorer_url=tracking.explorer_url,
            channel=progress.order.channel,
            quote=quote,
            approval_tx_hash=progress.approval_tx_hash,
            status="confirmed",
        )

    async def simulate_only(self, request: SwapRequest) -> SimulationReport:
        """Quote, simulate and estimate gas without signing anything."""
        quote = None
        try:
            self._check_request(request)
            quote = await self.quote_service.get_swap_data(
                request.from_token_address,
                request.to_token_address,
                request.amount,
                request.slippage_percent,
            )
            simulation = await self.simulator.simulate(quote)
            tx = quote.tx
            gas_limit = await self.gas_estimator.get_gas_limit(tx.from_address, tx.to, tx.value, tx.data)
        except (SwapgateError, ValueError) as e:
            classified = classify_exception(e)
            logger.error(f"Simulation run failed [{classified.kind}]: {classified.message}")
            return SimulationReport(
                success=False,
                quote=quote,
                error=classified.message,
                error_kind=classified.kind,
                action=classified.action,
            )

        report = SimulationReport(success=True, quote=quote, simulation=simulation, gas_limit=gas_limit)
        logger.info(
            f"Simulation complete: expected output {quote.to_amount}, "
            f"gas limit {gas_limit}, gas used {report.estimated_gas_used or 'unknown'}"
        )
        return report

    async def preflight_check(self) -> dict:
        """Check the RPC node is reachable and report the wallet balance."""
        chain = get_chain(self.chain_index)
        symbol = chain.symbol if chain else "native"
        chain_name = chain.name if chain else f"chain {self.chain_index}"
        report = {
            "ok": False,
            "chain_index": self.chain_index,
            "wallet": self.wallet_address,
            "block_number": None,
            "balance_wei": None,
            "balance": None,
            "warnings": [],
        }
        try:
            report["block_number"] = await self.chain_state.get_block_number()
            balance = await self.chain_state.get_balance(self.wallet_address)
        except SwapgateError as e:
            logger.error(f"Preflight check failed: {e}")
            report["error"] = str(e)
            return report

        report["balance_wei"] = balance
        report["balance"] = str(Web3.from_wei(balance, "ether"))
        logger.info(f"Connected to {chain_name} RPC, block {report['block_number']}")
        logger.info(f"Wallet {self.wallet_address} balance: {report['balance']} {symbol}")
        if balance == 0:
            warning = "Wallet has zero native balance, transactions will fail without gas"
            logger.warning(warning)
            report["warnings"].append(warning)

        report["ok"] = True
        return report

    async def aclose(self) -> None:
        await self.gateway.aclose()
        await self.chain_state.aclose()
