"""
Logging configuration for the sniper process.

Usage:
    from pool_sniper import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure the root logger with a compact console format.

    - Short timestamps (HH:MM:SS)
    - Quiets HTTP/web3 client chatter below WARNING
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
        )
    )
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("pool_sniper").setLevel(level)
