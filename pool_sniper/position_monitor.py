"""
Periodic stop-loss check for the held position.

Detection only: crossing the threshold produces an alert, nothing is sold.
"""

import asyncio
import logging
from typing import Callable, Optional

from web3 import Web3

from .exceptions import MonitorReadError
from .interfaces import ChainClient, Notifier
from .types import BPS_DENOMINATOR, Position

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


def stop_loss_threshold(held_amount: int, stop_loss_bps: int) -> int:
    """
    Balance level below which the position counts as stopped out.

    Example:
        >>> stop_loss_threshold(1000, 1000)
        900
    """
    return held_amount - (held_amount * stop_loss_bps) // BPS_DENOMINATOR


class PositionMonitor:
    """Compares the wallet's balance of the held asset against the stop-loss line."""

    def __init__(
        self,
        chain: ChainClient,
        notifier: Notifier,
        position_provider: Callable[[], Optional[Position]],
        owner_address: str,
        stop_loss_bps: int,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.chain = chain
        self.notifier = notifier
        self.position_provider = position_provider
        self.owner_address = owner_address
        self.stop_loss_bps = stop_loss_bps
        self.interval = interval
        self.checks = 0
        self.alerts_sent = 0

    async def run(self):
        """Check forever on a fixed interval until cancelled."""
        logger.info(f"Stop-loss monitor started (every {self.interval:.0f}s)")
        while True:
            await asyncio.sleep(self.interval)
            await self.check_once()

    async def check_once(self) -> Optional[bool]:
        """
        Run a single stop-loss evaluation.

        Returns:
            None when there is nothing to check or the read failed, otherwise
            whether the stop-loss threshold was breached
        """
        position = self.position_provider()
        if position is None:
            return None

        self.checks += 1
        try:
            balance = await self._read_balance(position)
        except MonitorReadError as e:
            logger.warning(f"Stop-loss check skipped: {e}")
            return None

        threshold = stop_loss_threshold(position.amount, self.stop_loss_bps)

        if balance < position.amount:
            logger.warning(
                f"⚠️ Current balance ({_fmt(balance)}) is below the bought amount "
                f"({_fmt(position.amount)}). Possible manual sale or loss."
            )

        logger.info(
            f"[StopLoss] Balance ({_fmt(balance)}) | Threshold ({_fmt(threshold)})"
        )

        if balance < threshold:
            logger.warning("🔥 Stop-loss hit! Manual sale required.")
            self.alerts_sent += 1
            self.notifier.send_alert(
                f"🔥 Stop-loss hit for {position.asset_address}!\n"
                f"Current balance: {_fmt(balance)}\n"
                f"Approx. entry price: {position.entry_price:.10f} spend/token. "
                f"Sale recommended!"
            )
            return True

        return False

    async def _read_balance(self, position: Position) -> int:
        try:
            return await self.chain.get_balance(position.asset_address, self.owner_address)
        except Exception as e:
            raise MonitorReadError(
                f"Could not read balance of {position.asset_address}: {e}",
                {"asset": position.asset_address},
            ) from e


def _fmt(amount: int) -> str:
    # display assumes 18 decimals
    return f"{Web3.from_wei(amount, 'ether'):f}"
