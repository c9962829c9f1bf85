"""Tests for settings loading and validation."""

from decimal import Decimal

import pytest
from web3 import Web3

from pool_sniper.config import load_settings
from pool_sniper.exceptions import ConfigurationError

BASE_ENV = {
    "ROUTER_ADDRESS": "0x" + "bb" * 20,
    "FACTORY_ADDRESS": "0x" + "cc" * 20,
    "WALLET": "0x" + "aa" * 20,
    "TOKEN_ADDRESS": "0x" + "11" * 20,
    "WETH_ADDRESS": "0x" + "22" * 20,
    "PRIVATE_KEY": "0x" + "4c" * 32,
    "NODE_RPC_URL": "https://rpc.example",
    "NODE_WS_URL": "wss://ws.example",
}


def env(**overrides):
    values = dict(BASE_ENV)
    values.update(overrides)
    return values


def test_defaults():
    settings = load_settings(env())

    assert settings.amount_to_buy == Decimal("0.01")
    assert settings.amount_to_buy_wei == 10**16
    assert settings.slippage_bps == 50
    assert settings.stop_loss_bps == 1000
    assert settings.reconnect_max_attempts == 10
    assert settings.reconnect_delay_seconds == 5.0
    assert settings.monitor_interval_seconds == 60.0
    assert not settings.telegram_enabled


def test_addresses_are_checksummed():
    settings = load_settings(env())
    assert settings.router_address == Web3.to_checksum_address(BASE_ENV["ROUTER_ADDRESS"])
    assert settings.router_address != BASE_ENV["ROUTER_ADDRESS"]


def test_optional_values():
    settings = load_settings(
        env(
            AMOUNT_TO_BUY="0.5",
            MAX_SLIPPAGE_PERCENT="1.25",
            STOP_LOSS_PERCENT="20",
            TELEGRAM_BOT_TOKEN="123:abc",
            TELEGRAM_CHAT_ID="-100",
            LOG_LEVEL="debug",
        )
    )

    assert settings.amount_to_buy_wei == 5 * 10**17
    assert settings.slippage_bps == 125
    assert settings.stop_loss_bps == 2000
    assert settings.telegram_enabled
    assert settings.log_level == "DEBUG"


def test_blank_optional_values_use_defaults():
    settings = load_settings(env(AMOUNT_TO_BUY="  ", TELEGRAM_CHAT_ID=""))
    assert settings.amount_to_buy == Decimal("0.01")
    assert settings.telegram_chat_id is None


def test_missing_required():
    values = env()
    del values["WALLET"]
    values["NODE_WS_URL"] = " "

    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(values)
    assert exc_info.value.details["missing"] == ["WALLET", "NODE_WS_URL"]


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"TOKEN_ADDRESS": "0x1234"}, "target_token_address"),
        ({"NODE_WS_URL": "https://not-a-socket"}, "ws_url"),
        ({"NODE_RPC_URL": "ftp://rpc"}, "rpc_url"),
        ({"AMOUNT_TO_BUY": "0"}, "amount_to_buy"),
        ({"MAX_SLIPPAGE_PERCENT": "150"}, "max_slippage_percent"),
        ({"LOG_LEVEL": "chatty"}, "log_level"),
    ],
)
def test_invalid_values(overrides, field):
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(env(**overrides))
    assert field in exc_info.value.details["fields"]


def test_secrets_are_not_printed():
    settings = load_settings(env(TELEGRAM_BOT_TOKEN="123:supersecret"))
    text = repr(settings)
    assert BASE_ENV["PRIVATE_KEY"] not in text
    assert "supersecret" not in text
    assert settings.private_key.get_secret_value() == BASE_ENV["PRIVATE_KEY"]
