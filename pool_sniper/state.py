"""
Single-flight trade state machine.

IDLE -> BUYING -> BOUGHT, with BUYING -> IDLE on failure. try_begin_buy() is
synchronous and must be called before the first await of any buy attempt;
that is what keeps two events handled in the same loop turn from both buying.
"""

import logging
from decimal import Decimal
from typing import Optional

from .exceptions import InvalidTransitionError
from .types import BotState, Position, TradePhase

logger = logging.getLogger(__name__)


class TradeStateMachine:
    """Owns BotState and exposes only transition methods."""

    def __init__(self):
        self._phase = TradePhase.IDLE
        self._position: Optional[Position] = None
        self.attempts = 0

    @property
    def phase(self) -> TradePhase:
        return self._phase

    @property
    def has_traded(self) -> bool:
        return self._phase is not TradePhase.IDLE

    @property
    def position(self) -> Optional[Position]:
        return self._position

    def snapshot(self) -> BotState:
        """Get an immutable copy of the current state."""
        if self._position is None:
            return BotState(phase=self._phase)
        return BotState(
            phase=self._phase,
            held_asset_address=self._position.asset_address,
            held_amount=self._position.amount,
            entry_price=self._position.entry_price,
        )

    def try_begin_buy(self) -> bool:
        """
        Claim the single buy slot.

        Returns:
            True if the caller now owns the attempt, False if a buy is
            already in flight or has completed
        """
        if self._phase is not TradePhase.IDLE:
            logger.info(f"Buy slot unavailable (phase={self._phase.value}), skipping")
            return False

        self._phase = TradePhase.BUYING
        self.attempts += 1
        logger.debug(f"Buy attempt #{self.attempts} started")
        return True

    def complete_buy(self, asset_address: str, amount: int, entry_price: Decimal):
        """Record the confirmed position. BOUGHT is terminal for the run."""
        self._require(TradePhase.BUYING, TradePhase.BOUGHT)
        if amount <= 0:
            raise InvalidTransitionError(
                f"Cannot record a position of {amount}",
                current=self._phase.value,
                requested=TradePhase.BOUGHT.value,
            )

        self._position = Position(asset_address, amount, entry_price)
        self._phase = TradePhase.BOUGHT
        logger.info(f"Position recorded: {amount} of {asset_address}")

    def fail_buy(self):
        """Release the buy slot so a later event can try again."""
        self._require(TradePhase.BUYING, TradePhase.IDLE)
        self._phase = TradePhase.IDLE
        logger.info("Buy attempt failed, back to idle")

    def _require(self, expected: TradePhase, requested: TradePhase):
        if self._phase is not expected:
            raise InvalidTransitionError(
                f"Cannot move to {requested.value} from {self._phase.value}",
                current=self._phase.value,
                requested=requested.value,
            )
