"""
Relevance filter for pool creation events.

A pool is relevant only when it pairs the target asset with the spend asset.
"""

from typing import Optional

from .types import IRRELEVANT, Classification, PoolCreatedEvent


def addresses_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison (checksum casing is ignored)."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def classify(
    event: PoolCreatedEvent, target_asset: str, spend_asset: str
) -> Classification:
    """
    Decide whether a new pool is the one we are waiting for.

    Args:
        event: Decoded PoolCreated event
        target_asset: Address of the asset to buy
        spend_asset: Address of the asset to pay with

    Returns:
        Classification with spend_side/target_side set to the event's own
        addresses when relevant, IRRELEVANT otherwise
    """
    if addresses_equal(target_asset, spend_asset):
        return IRRELEVANT

    a, b = event.asset_a, event.asset_b

    if addresses_equal(a, target_asset) and addresses_equal(b, spend_asset):
        return Classification(relevant=True, spend_side=b, target_side=a)

    if addresses_equal(b, target_asset) and addresses_equal(a, spend_asset):
        return Classification(relevant=True, spend_side=a, target_side=b)

    return IRRELEVANT
