"""
Settings loading and validation.

Settings come from the process environment (optionally seeded from a .env
file) and are validated once at startup. Anything missing or malformed
raises ConfigurationError before the engine is built.
"""

import os
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from web3 import Web3

from .exceptions import ConfigurationError
from .types import percent_to_bps

# env var -> settings field
REQUIRED_ENV = {
    "ROUTER_ADDRESS": "router_address",
    "FACTORY_ADDRESS": "factory_address",
    "WALLET": "wallet_address",
    "TOKEN_ADDRESS": "target_token_address",
    "WETH_ADDRESS": "spend_token_address",
    "PRIVATE_KEY": "private_key",
    "NODE_RPC_URL": "rpc_url",
    "NODE_WS_URL": "ws_url",
}

OPTIONAL_ENV = {
    "AMOUNT_TO_BUY": "amount_to_buy",
    "MAX_SLIPPAGE_PERCENT": "max_slippage_percent",
    "STOP_LOSS_PERCENT": "stop_loss_percent",
    "TELEGRAM_BOT_TOKEN": "telegram_bot_token",
    "TELEGRAM_CHAT_ID": "telegram_chat_id",
    "RECONNECT_MAX_ATTEMPTS": "reconnect_max_attempts",
    "RECONNECT_DELAY_SECONDS": "reconnect_delay_seconds",
    "STOP_LOSS_INTERVAL_SECONDS": "monitor_interval_seconds",
    "EXPLORER_URL": "explorer_url",
    "LOG_LEVEL": "log_level",
}


class SniperSettings(BaseModel):
    """Validated, immutable runtime settings."""

    model_config = {"frozen": True}

    # Contracts and wallet
    router_address: str
    factory_address: str
    wallet_address: str
    target_token_address: str
    spend_token_address: str

    # Secrets and endpoints
    private_key: SecretStr
    rpc_url: str
    ws_url: str

    # Trading parameters
    amount_to_buy: Decimal = Field(default=Decimal("0.01"), gt=0)
    max_slippage_percent: Decimal = Field(default=Decimal("0.5"), gt=0, le=100)
    stop_loss_percent: Decimal = Field(default=Decimal("10"), gt=0, le=100)

    # Alerts
    telegram_bot_token: Optional[SecretStr] = None
    telegram_chat_id: Optional[str] = None
    explorer_url: str = "https://etherscan.io"

    # Runtime
    reconnect_max_attempts: int = Field(default=10, ge=0)
    reconnect_delay_seconds: float = Field(default=5.0, ge=0)
    monitor_interval_seconds: float = Field(default=60.0, gt=0)
    log_level: str = "INFO"

    @field_validator(
        "router_address",
        "factory_address",
        "wallet_address",
        "target_token_address",
        "spend_token_address",
    )
    @classmethod
    def validate_address(cls, v):
        if not Web3.is_address(v):
            raise ValueError(f"Invalid address: {v}")
        return Web3.to_checksum_address(v)

    @field_validator("ws_url")
    @classmethod
    def validate_ws_url(cls, v):
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("ws_url must start with ws:// or wss://")
        return v

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("rpc_url must start with http:// or https://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def amount_to_buy_wei(self) -> int:
        return Web3.to_wei(self.amount_to_buy, "ether")

    @property
    def slippage_bps(self) -> int:
        return percent_to_bps(self.max_slippage_percent)

    @property
    def stop_loss_bps(self) -> int:
        return percent_to_bps(self.stop_loss_percent)

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


def load_settings(
    env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None
) -> SniperSettings:
    """
    Load and validate settings.

    Args:
        env: Mapping to read from instead of os.environ (no .env loading)
        dotenv_path: Explicit .env file; defaults to python-dotenv's search

    Returns:
        Validated SniperSettings

    Raises:
        ConfigurationError: If a required variable is missing or any value is invalid
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    missing = [name for name in REQUIRED_ENV if not (env.get(name) or "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            {"missing": missing},
        )

    values: Dict[str, Any] = {
        field: env[name].strip() for name, field in REQUIRED_ENV.items()
    }
    for name, field in OPTIONAL_ENV.items():
        raw = (env.get(name) or "").strip()
        if raw:
            values[field] = raw

    try:
        return SniperSettings(**values)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(
            f"Invalid configuration: {', '.join(fields)}",
            {"fields": fields},
        ) from e
