"""
Dependency injection interfaces for the sniper core.

The core only talks to the chain and to the operator through these protocols,
so tests can hand in fakes and no component reaches for a global.
"""

from typing import Any, List, Mapping, Protocol, Tuple, runtime_checkable

from .types import SwapRequest


@runtime_checkable
class ChainClient(Protocol):
    """Capability surface of the blockchain client used by the core."""

    @property
    def wallet_address(self) -> str:
        """Address that receives swap output and holds the position."""
        ...

    @property
    def signer_address(self) -> str:
        """Address whose key signs transactions and grants allowances."""
        ...

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        """ERC20 allowance in base units."""
        ...

    async def get_balance(self, token: str, owner: str) -> int:
        """ERC20 balance in base units."""
        ...

    async def send_approve(self, token: str, spender: str, amount: int) -> str:
        """Sign and submit an ERC20 approve, returning the tx hash."""
        ...

    async def estimate_swap_gas(self, request: SwapRequest) -> int:
        """Gas estimate for exactInputSingle with these parameters."""
        ...

    async def send_swap(self, request: SwapRequest, gas_limit: int) -> str:
        """Sign and submit exactInputSingle, returning the tx hash."""
        ...

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Mapping[str, Any]:
        """Block until the transaction is mined; raises on timeout."""
        ...

    def decode_swap_amounts(self, receipt: Mapping[str, Any]) -> List[Tuple[int, int]]:
        """(amount0, amount1) of every pool Swap event in the receipt."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Outbound operator alerts. Never raises into the caller."""

    def send_alert(self, text: str) -> None:
        """Queue an alert for delivery and return immediately."""
        ...

    async def flush(self) -> None:
        """Wait for queued alerts to be delivered."""
        ...
