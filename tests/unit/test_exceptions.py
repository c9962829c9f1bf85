"""Tests for the exceptions module."""

from pool_sniper.exceptions import (
    ApprovalError,
    ConfigurationError,
    InvalidTransitionError,
    MonitorReadError,
    ReconnectExhaustedError,
    SniperError,
    StreamConnectionError,
    SwapError,
)


def test_base_exception():
    """Test the base exception class."""
    error = SniperError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = SniperError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    error = ConfigurationError("Missing env", {"missing": ["WALLET"]})
    assert str(error) == "Missing env"
    assert error.details["missing"] == ["WALLET"]
    assert isinstance(error, SniperError)


def test_stream_errors():
    error = StreamConnectionError("closed", endpoint="wss://node")
    assert error.endpoint == "wss://node"

    exhausted = ReconnectExhaustedError("gave up", attempts=10)
    assert exhausted.attempts == 10
    assert isinstance(exhausted, SniperError)


def test_trade_errors():
    approval = ApprovalError("no approval", token="0xabc", tx_hash="0x01")
    assert approval.token == "0xabc"
    assert approval.tx_hash == "0x01"

    swap = SwapError("reverted", tx_hash="0x02", reason="revert")
    assert swap.tx_hash == "0x02"
    assert swap.reason == "revert"
    assert isinstance(swap, SniperError)


def test_monitor_and_transition_errors():
    assert isinstance(MonitorReadError("rpc down"), SniperError)

    error = InvalidTransitionError("bad", current="bought", requested="buying")
    assert error.current == "bought"
    assert error.requested == "buying"
