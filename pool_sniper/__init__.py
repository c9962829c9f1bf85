"""
Pool Sniper.

Watches a Uniswap V3 factory for the creation of one specific pool, buys the
target token exactly once with a bounded-slippage swap as soon as that pool
appears, then keeps an eye on the position for a stop-loss condition.
"""

PROJECT_NAME = "pool-sniper"

from pool_sniper.version import __version__

VERSION = __version__

from pool_sniper.engine import SniperEngine
from pool_sniper.event_filter import classify
from pool_sniper.position_monitor import PositionMonitor, stop_loss_threshold
from pool_sniper.state import TradeStateMachine
from pool_sniper.stream import ReconnectPolicy, StreamConnection
from pool_sniper.swap_executor import SwapExecutor, min_amount_out
from pool_sniper.types import (
    BotState,
    Classification,
    OutputSource,
    PoolCreatedEvent,
    SwapOutcome,
    SwapRequest,
    TradePhase,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "SniperEngine",
    "classify",
    "PositionMonitor",
    "stop_loss_threshold",
    "TradeStateMachine",
    "ReconnectPolicy",
    "StreamConnection",
    "SwapExecutor",
    "min_amount_out",
    "BotState",
    "Classification",
    "OutputSource",
    "PoolCreatedEvent",
    "SwapOutcome",
    "SwapRequest",
    "TradePhase",
]
