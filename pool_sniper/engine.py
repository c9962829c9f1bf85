"""
Sniper engine: assembles the core components and runs them on one event loop.

    StreamConnection --(asyncio.Queue)--> consume() --> handle_pool_created()
                                                          |- classify()
                                                          |- TradeStateMachine.try_begin_buy()
                                                          |- SwapExecutor.approve() / swap()
    PositionMonitor.run()  (independent timer)

Every event is handled in its own task so a slow swap never blocks the
queue. The single-flight guard is taken before the handler's first await,
which is what makes the second of two back-to-back relevant events a no-op.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Optional, Set

from web3 import Web3

from .event_filter import classify
from .exceptions import ApprovalError, ReconnectExhaustedError, SwapError
from .interfaces import ChainClient, Notifier
from .position_monitor import DEFAULT_INTERVAL_SECONDS, PositionMonitor
from .state import TradeStateMachine
from .stream import ReconnectPolicy, StreamConnection
from .swap_executor import SwapExecutor
from .types import Classification, PoolCreatedEvent, SwapOutcome

logger = logging.getLogger(__name__)


class SniperEngine:
    """Watches for the target pool, buys once, then watches the position."""

    def __init__(
        self,
        chain: ChainClient,
        notifier: Notifier,
        target_asset: str,
        spend_asset: str,
        amount_in: int,
        router_address: str,
        slippage_bps: int,
        stop_loss_bps: int,
        monitor_interval: float = DEFAULT_INTERVAL_SECONDS,
        explorer_url: str = "https://etherscan.io",
        executor: Optional[SwapExecutor] = None,
        state: Optional[TradeStateMachine] = None,
        queue: Optional["asyncio.Queue[PoolCreatedEvent]"] = None,
    ):
        self.chain = chain
        self.notifier = notifier
        self.target_asset = target_asset
        self.spend_asset = spend_asset
        self.amount_in = amount_in
        self.explorer_url = explorer_url.rstrip("/")

        self.state = state or TradeStateMachine()
        self.executor = executor or SwapExecutor(chain, router_address, slippage_bps)
        self.queue: "asyncio.Queue[PoolCreatedEvent]" = (
            queue if queue is not None else asyncio.Queue()
        )
        self.monitor = PositionMonitor(
            chain,
            notifier,
            position_provider=lambda: self.state.position,
            owner_address=chain.wallet_address,
            stop_loss_bps=stop_loss_bps,
            interval=monitor_interval,
        )

        self._handlers: Set[asyncio.Task] = set()
        self.events_seen = 0

    @classmethod
    def from_settings(cls, settings, chain: ChainClient, notifier: Notifier) -> "SniperEngine":
        return cls(
            chain,
            notifier,
            target_asset=settings.target_token_address,
            spend_asset=settings.spend_token_address,
            amount_in=settings.amount_to_buy_wei,
            router_address=settings.router_address,
            slippage_bps=settings.slippage_bps,
            stop_loss_bps=settings.stop_loss_bps,
            monitor_interval=settings.monitor_interval_seconds,
            explorer_url=settings.explorer_url,
        )

    def build_stream(
        self, ws_url: str, factory_address: str, policy: Optional[ReconnectPolicy] = None
    ) -> StreamConnection:
        return StreamConnection(ws_url, factory_address, self.queue, policy=policy)

    async def run(self, stream: StreamConnection) -> int:
        """
        Run until the stream gives up.

        Returns:
            Process exit code (1 on reconnect exhaustion)
        """
        logger.info("Starting sniper engine...")
        consumer = asyncio.create_task(self.consume(), name="pool-consumer")
        monitor = asyncio.create_task(self.monitor.run(), name="stop-loss-monitor")

        try:
            await stream.run()
        except ReconnectExhaustedError as e:
            logger.critical(f"{e}. Shutting down.")
            self.notifier.send_alert(
                "🚨 WebSocket reconnect limit reached. Bot stopped."
            )
            return 1
        finally:
            await self._shutdown(consumer, monitor)

        return 0

    async def consume(self):
        """Drain the event queue, one handler task per event."""
        while True:
            event = await self.queue.get()
            self.dispatch(event)
            self.queue.task_done()

    def dispatch(self, event: PoolCreatedEvent) -> asyncio.Task:
        task = asyncio.create_task(self.handle_pool_created(event))
        self._handlers.add(task)
        task.add_done_callback(self._handlers.discard)
        return task

    async def handle_pool_created(self, event: PoolCreatedEvent) -> bool:
        """
        React to one PoolCreated event.

        Returns:
            True if this call performed the buy
        """
        self.events_seen += 1
        logger.info(
            f"New pool detected: {event.pool_address} "
            f"(token0={event.asset_a}, token1={event.asset_b}, fee={event.fee})"
        )

        if self.state.has_traded:
            logger.info("Already bought or buying. Ignoring new pool.")
            return False

        classification = classify(event, self.target_asset, self.spend_asset)
        if not classification.relevant:
            logger.info("Pool is not target/spend pair. Ignoring.")
            return False

        # No await above this line.
        if not self.state.try_begin_buy():
            return False

        logger.info(f"Relevant pool detected: {event.pool_address}. Trying to buy...")
        return await self._buy(event, classification)

    async def _buy(self, event: PoolCreatedEvent, classification: Classification) -> bool:
        pool = event.pool_address
        try:
            approved = await self.executor.approve(classification.spend_side, self.amount_in)
            if not approved:
                raise ApprovalError(
                    f"Approval of spend asset failed for pool {pool}",
                    token=classification.spend_side,
                )

            outcome = await self.executor.swap(
                classification.spend_side,
                classification.target_side,
                self.amount_in,
                event.fee,
            )
        except ApprovalError as e:
            logger.error(f"{e}.")
            self.notifier.send_alert(
                f"🚨 Approval of spend asset failed for purchase on pool {pool}."
            )
            self.state.fail_buy()
            return False
        except SwapError as e:
            logger.error(f"❌ Swap failed for pool {pool}: {e}")
            self.notifier.send_alert(f"❌ Swap failed for pool {pool}.")
            self.state.fail_buy()
            return False
        except Exception as e:
            logger.exception(f"Unexpected error while buying on pool {pool}: {e}")
            self.notifier.send_alert(f"❌ Purchase on pool {pool} aborted: {e}")
            self.state.fail_buy()
            return False

        self._record_purchase(event, classification, outcome)
        return True

    def _record_purchase(
        self, event: PoolCreatedEvent, classification: Classification, outcome: SwapOutcome
    ):
        entry_price = Decimal(self.amount_in) / Decimal(outcome.amount_out)
        self.state.complete_buy(classification.target_side, outcome.amount_out, entry_price)

        amount = Web3.from_wei(outcome.amount_out, "ether")
        pool = event.pool_address
        logger.info(
            f"✅ Purchase complete on pool {pool}. "
            f"Received {amount} of {classification.target_side}"
        )

        note = ""
        if outcome.is_degraded:
            logger.warning(
                "Output amount inferred from wallet balance, not the Swap log; "
                "stop-loss math may be off"
            )
            note = "\n⚠️ Amount inferred from wallet balance"

        self.notifier.send_alert(
            f"✅ Purchase complete!\n"
            f"Pool: [{pool}]({self.explorer_url}/address/{pool})\n"
            f"Token: {classification.target_side}\n"
            f"Amount: {amount}\n"
            f"Buy TX: [Link]({self.explorer_url}/tx/{outcome.tx_hash})"
            f"{note}"
        )

    async def _shutdown(self, *tasks: asyncio.Task):
        pending = [*tasks, *self._handlers]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        await self.notifier.flush()
