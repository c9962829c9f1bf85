"""
Core data types for pool sniping.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

# Uniswap V3 router deadline window, in seconds
SWAP_DEADLINE_SECONDS = 5 * 60

BPS_DENOMINATOR = 10_000


class TradePhase(Enum):
    """
    Lifecycle of the single purchase a run is allowed to make.

    Values:
        IDLE: No buy in flight and nothing bought yet
        BUYING: A buy attempt holds the single-flight slot
        BOUGHT: Swap confirmed, position recorded (terminal)
    """

    IDLE = "idle"
    BUYING = "buying"
    BOUGHT = "bought"


class OutputSource(Enum):
    """Where a swap's realized output amount came from."""

    RECEIPT_LOG = "receipt_log"
    BALANCE_FALLBACK = "balance_fallback"


@dataclass(frozen=True)
class PoolCreatedEvent:
    """
    A factory PoolCreated notification.

    Attributes:
        asset_a: token0 of the new pool
        asset_b: token1 of the new pool
        fee: Fee tier in hundredths of a bip (e.g. 3000 for 0.3%)
        tick_spacing: Pool tick spacing
        pool_address: Address of the created pool
        block_number: Block the event was emitted in, if known
        transaction_hash: Creating transaction, if known
    """

    asset_a: str
    asset_b: str
    fee: int
    tick_spacing: int
    pool_address: str
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class Classification:
    """Result of checking a pool against the configured asset pair."""

    relevant: bool
    spend_side: Optional[str] = None
    target_side: Optional[str] = None


IRRELEVANT = Classification(relevant=False)


@dataclass(frozen=True)
class SwapRequest:
    """Parameters for a router exactInputSingle call."""

    spend_asset: str
    target_asset: str
    fee: int
    recipient: str
    deadline: int
    amount_in: int
    min_amount_out: int
    sqrt_price_limit_x96: int = 0

    def as_router_params(self) -> Tuple[str, str, int, str, int, int, int, int]:
        """Tuple in ISwapRouter.ExactInputSingleParams field order."""
        return (
            self.spend_asset,
            self.target_asset,
            self.fee,
            self.recipient,
            self.deadline,
            self.amount_in,
            self.min_amount_out,
            self.sqrt_price_limit_x96,
        )


@dataclass(frozen=True)
class SwapOutcome:
    """
    Realized result of a confirmed swap.

    A BALANCE_FALLBACK outcome means no usable Swap log was found and the
    amount is the recipient's whole post-swap balance of the target asset.
    """

    amount_out: int
    source: OutputSource
    tx_hash: str

    @property
    def is_degraded(self) -> bool:
        return self.source is OutputSource.BALANCE_FALLBACK


@dataclass(frozen=True)
class Position:
    """The held asset recorded after a confirmed buy."""

    asset_address: str
    amount: int
    entry_price: Decimal


@dataclass(frozen=True)
class BotState:
    """Read-only snapshot of the trade state."""

    phase: TradePhase = TradePhase.IDLE
    held_asset_address: Optional[str] = None
    held_amount: Optional[int] = None
    entry_price: Optional[Decimal] = None

    @property
    def has_traded(self) -> bool:
        return self.phase is not TradePhase.IDLE

    @property
    def position(self) -> Optional[Position]:
        if (
            self.held_asset_address is None
            or self.held_amount is None
            or self.entry_price is None
        ):
            return None
        return Position(self.held_asset_address, self.held_amount, self.entry_price)


def percent_to_bps(percent: Decimal) -> int:
    """Convert a percent (e.g. Decimal("0.5")) to whole basis points, truncating."""
    return int(Decimal(percent) * 100)
