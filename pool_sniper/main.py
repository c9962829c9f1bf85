"""
Process entry point.

Exit codes:
    0 - stopped by SIGINT/SIGTERM
    1 - fatal startup error or reconnect budget exhausted
"""

import asyncio
import logging
import signal
import sys

from . import logging_config
from .chain import Web3ChainClient
from .config import SniperSettings, load_settings
from .engine import SniperEngine
from .exceptions import ConfigurationError
from .notifier import TelegramNotifier
from .stream import ReconnectPolicy

logger = logging.getLogger(__name__)


async def run_bot(settings: SniperSettings) -> int:
    """Build the collaborators from settings and run the engine."""
    notifier = TelegramNotifier(
        settings.telegram_bot_token.get_secret_value()
        if settings.telegram_bot_token
        else None,
        settings.telegram_chat_id,
    )

    try:
        chain = Web3ChainClient(
            settings.rpc_url,
            settings.private_key.get_secret_value(),
            settings.router_address,
            wallet_address=settings.wallet_address,
        )
        if not await asyncio.to_thread(chain.is_connected):
            raise ConnectionError(f"Failed to connect to RPC at {settings.rpc_url}")
    except (ConfigurationError, ConnectionError) as e:
        logger.critical(f"Fatal error starting the bot: {e}")
        notifier.send_alert(f"🚨 Fatal error starting the bot: {e}")
        await notifier.close()
        return 1

    engine = SniperEngine.from_settings(settings, chain, notifier)
    stream = engine.build_stream(
        settings.ws_url,
        settings.factory_address,
        ReconnectPolicy(
            max_attempts=settings.reconnect_max_attempts,
            delay=settings.reconnect_delay_seconds,
        ),
    )

    main_task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, main_task.cancel)
    except NotImplementedError:
        pass

    try:
        return await engine.run(stream)
    except asyncio.CancelledError:
        logger.info("Termination signal received. Stopping.")
        return 0
    finally:
        await notifier.close()


def main() -> int:
    logging_config.setup()
    logger.info("Starting Sniper Bot...")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.critical(f"Fatal error starting the bot: {e}")
        return 1

    logging_config.setup(getattr(logging, settings.log_level))
    logger.info("Settings loaded.")

    try:
        return asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted. Stopping.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
