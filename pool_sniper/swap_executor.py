"""
Approval and bounded-slippage swap execution against a Uniswap V3 router.

Builds exactInputSingle requests, submits them through the injected
ChainClient, and recovers the realized output amount from the receipt's pool
Swap logs, falling back to the recipient's balance when no log is usable.
"""

import logging
import time
from typing import Any, Callable, Mapping, Optional

from .exceptions import SwapError
from .interfaces import ChainClient
from .types import (
    BPS_DENOMINATOR,
    SWAP_DEADLINE_SECONDS,
    OutputSource,
    SwapOutcome,
    SwapRequest,
)

logger = logging.getLogger(__name__)

GAS_SAFETY_MARGIN = 50_000
RECEIPT_TIMEOUT_SECONDS = 180.0


def min_amount_out(amount_in: int, slippage_bps: int) -> int:
    """
    Minimum acceptable output for a given input and slippage bound.

    Example:
        >>> min_amount_out(1_000_000, 50)
        995000
    """
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative, got {amount_in}")
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps out of range: {slippage_bps}")
    return amount_in - (amount_in * slippage_bps) // BPS_DENOMINATOR


def build_swap_request(
    spend_asset: str,
    target_asset: str,
    amount_in: int,
    fee: int,
    recipient: str,
    slippage_bps: int,
    now: float,
    deadline_seconds: int = SWAP_DEADLINE_SECONDS,
) -> SwapRequest:
    """Build a fresh SwapRequest for one attempt."""
    return SwapRequest(
        spend_asset=spend_asset,
        target_asset=target_asset,
        fee=fee,
        recipient=recipient,
        deadline=int(now) + deadline_seconds,
        amount_in=amount_in,
        min_amount_out=min_amount_out(amount_in, slippage_bps),
        sqrt_price_limit_x96=0,
    )


def output_from_swap_amounts(amounts) -> int:
    """
    Pick the delivered amount out of decoded pool Swap events.

    Pool Swap amounts are signed from the pool's point of view, so the side
    that went negative is what left the pool for the recipient. Returns 0
    when no event has a negative side.
    """
    for amount0, amount1 in amounts:
        if amount0 < 0:
            return -amount0
        if amount1 < 0:
            return -amount1
    return 0


class SwapExecutor:
    """Runs the approve + swap sequence for a single buy attempt."""

    def __init__(
        self,
        chain: ChainClient,
        router_address: str,
        slippage_bps: int,
        gas_margin: int = GAS_SAFETY_MARGIN,
        receipt_timeout: float = RECEIPT_TIMEOUT_SECONDS,
        deadline_seconds: int = SWAP_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.chain = chain
        self.router_address = router_address
        self.slippage_bps = slippage_bps
        self.gas_margin = gas_margin
        self.receipt_timeout = receipt_timeout
        self.deadline_seconds = deadline_seconds
        self.clock = clock
        self.last_tx_hash: Optional[str] = None

    async def approve(self, spend_asset: str, amount: int) -> bool:
        """
        Make sure the router may pull `amount` of the spend asset.

        Skips the transaction when the current allowance already covers it.

        Returns:
            True when the allowance is sufficient afterwards, False on any
            submission error, revert or timeout
        """
        owner = self.chain.signer_address
        try:
            allowance = await self.chain.get_allowance(
                spend_asset, owner, self.router_address
            )
            logger.info(f"Current allowance for {spend_asset}: {allowance}")

            if allowance >= amount:
                logger.info(f"Allowance for {spend_asset} already sufficient")
                return True

            tx_hash = await self.chain.send_approve(
                spend_asset, self.router_address, amount
            )
            logger.info(f"Approving {spend_asset} - TX: {tx_hash}")
            receipt = await self.chain.wait_for_receipt(tx_hash, self.receipt_timeout)
        except Exception as e:
            logger.error(f"Approval of {spend_asset} failed: {e}")
            return False

        if not _succeeded(receipt):
            logger.error(f"Approval of {spend_asset} reverted - TX: {tx_hash}")
            return False

        logger.info(f"✓ {spend_asset} approved")
        return True

    async def swap(
        self, spend_asset: str, target_asset: str, amount_in: int, fee: int
    ) -> SwapOutcome:
        """
        Swap exactly `amount_in` of the spend asset for the target asset.

        Raises:
            SwapError: If the swap was not submitted, reverted, timed out, or
                no output could be attributed to it
        """
        request = build_swap_request(
            spend_asset,
            target_asset,
            amount_in,
            fee,
            recipient=self.chain.wallet_address,
            slippage_bps=self.slippage_bps,
            now=self.clock(),
            deadline_seconds=self.deadline_seconds,
        )
        logger.info(
            f"Swap request: {amount_in} {spend_asset} -> {target_asset} "
            f"(fee={fee}, min_out={request.min_amount_out}, deadline={request.deadline})"
        )

        try:
            estimated_gas = await self.chain.estimate_swap_gas(request)
            logger.info(f"Estimated gas for swap: {estimated_gas}")
            tx_hash = await self.chain.send_swap(
                request, gas_limit=estimated_gas + self.gas_margin
            )
        except Exception as e:
            raise SwapError(f"Swap submission failed: {e}", reason="submission") from e

        self.last_tx_hash = tx_hash
        logger.info(f"Swap sent - TX: {tx_hash}")

        try:
            receipt = await self.chain.wait_for_receipt(tx_hash, self.receipt_timeout)
        except Exception as e:
            raise SwapError(
                f"No receipt for swap {tx_hash}: {e}", tx_hash=tx_hash, reason="timeout"
            ) from e

        if not _succeeded(receipt):
            raise SwapError(f"Swap {tx_hash} reverted", tx_hash=tx_hash, reason="revert")

        logger.info(f"Swap confirmed in block {receipt.get('blockNumber')}")
        return await self._recover_output(receipt, request, tx_hash)

    async def _recover_output(
        self, receipt: Mapping[str, Any], request: SwapRequest, tx_hash: str
    ) -> SwapOutcome:
        try:
            amount_out = output_from_swap_amounts(self.chain.decode_swap_amounts(receipt))
        except Exception as e:
            logger.warning(f"Could not decode Swap logs for {tx_hash}: {e}")
            amount_out = 0

        if amount_out > 0:
            logger.info(f"Received {amount_out} of {request.target_asset}")
            return SwapOutcome(amount_out, OutputSource.RECEIPT_LOG, tx_hash)

        logger.warning(
            "Could not extract output amount from Swap log, "
            "falling back to post-swap balance"
        )
        try:
            balance = await self.chain.get_balance(request.target_asset, request.recipient)
        except Exception as e:
            raise SwapError(
                f"Swap {tx_hash} confirmed but output could not be read: {e}",
                tx_hash=tx_hash,
                reason="output_unknown",
            ) from e

        logger.info(f"Balance of {request.target_asset} after swap: {balance}")
        if balance <= 0:
            raise SwapError(
                f"Swap {tx_hash} confirmed but nothing was received",
                tx_hash=tx_hash,
                reason="zero_output",
            )
        return SwapOutcome(balance, OutputSource.BALANCE_FALLBACK, tx_hash)


def _succeeded(receipt: Mapping[str, Any]) -> bool:
    return receipt.get("status", 1) == 1
