"""Tests for pool relevance classification."""

import pytest

from fakes import POOL, TOKEN, USDC, WETH, make_event
from pool_sniper.event_filter import addresses_equal, classify


def test_target_then_spend_is_relevant():
    result = classify(make_event(TOKEN, WETH), TOKEN, WETH)

    assert result.relevant
    assert result.target_side == TOKEN
    assert result.spend_side == WETH


def test_reversed_order_is_relevant():
    result = classify(make_event(WETH, TOKEN), TOKEN, WETH)

    assert result.relevant
    assert result.target_side == TOKEN
    assert result.spend_side == WETH


def test_third_asset_is_irrelevant():
    result = classify(make_event(TOKEN, USDC), TOKEN, WETH)

    assert not result.relevant
    assert result.spend_side is None
    assert result.target_side is None


def test_comparison_ignores_case():
    checksummed = "0x" + "Ab" * 20
    event = make_event(checksummed, WETH)

    result = classify(event, checksummed.lower(), WETH.upper().replace("0X", "0x"))

    assert result.relevant
    # sides are reported with the event's own casing
    assert result.target_side == checksummed


def test_same_target_and_spend_never_matches():
    result = classify(make_event(TOKEN, TOKEN), TOKEN, TOKEN)
    assert not result.relevant


def test_classify_is_pure():
    event = make_event(TOKEN, WETH)
    assert classify(event, TOKEN, WETH) == classify(event, TOKEN, WETH)
    assert event.pool_address == POOL


@pytest.mark.parametrize(
    "a,b,expected",
    [
        (TOKEN, TOKEN.upper().replace("0X", "0x"), True),
        (TOKEN, WETH, False),
        ("", TOKEN, False),
        (None, None, False),
    ],
)
def test_addresses_equal(a, b, expected):
    assert addresses_equal(a, b) is expected
