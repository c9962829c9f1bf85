"""Tests for the process entry point."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from pool_sniper import main as main_module
from pool_sniper.config import load_settings
from pool_sniper.exceptions import ConfigurationError

ENV = {
    "ROUTER_ADDRESS": "0x" + "bb" * 20,
    "FACTORY_ADDRESS": "0x" + "cc" * 20,
    "WALLET": "0x" + "aa" * 20,
    "TOKEN_ADDRESS": "0x" + "11" * 20,
    "WETH_ADDRESS": "0x" + "22" * 20,
    "PRIVATE_KEY": "0x" + "4c" * 32,
    "NODE_RPC_URL": "https://rpc.example",
    "NODE_WS_URL": "wss://ws.example",
}


@patch("pool_sniper.main.logging_config.setup")
@patch("pool_sniper.main.load_settings")
def test_main_exits_nonzero_on_bad_config(mock_load, mock_setup):
    mock_load.side_effect = ConfigurationError("Missing required environment variables: WALLET")
    assert main_module.main() == 1


@pytest.mark.asyncio
async def test_run_bot_fails_fast_when_rpc_unreachable():
    settings = load_settings(ENV)
    chain = Mock()
    chain.is_connected.return_value = False

    with patch("pool_sniper.main.Web3ChainClient", return_value=chain), patch(
        "pool_sniper.main.SniperEngine"
    ) as engine_cls:
        assert await main_module.run_bot(settings) == 1

    engine_cls.from_settings.assert_not_called()


@pytest.mark.asyncio
async def test_run_bot_returns_engine_exit_code():
    settings = load_settings(ENV)
    chain = Mock()
    chain.is_connected.return_value = True

    engine = Mock()
    engine.run = AsyncMock(return_value=1)

    with patch("pool_sniper.main.Web3ChainClient", return_value=chain), patch(
        "pool_sniper.main.SniperEngine.from_settings", return_value=engine
    ):
        assert await main_module.run_bot(settings) == 1

    policy = engine.build_stream.call_args[0][2]
    assert policy.max_attempts == 10
    assert policy.delay == 5.0
