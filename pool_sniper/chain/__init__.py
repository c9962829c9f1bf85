"""
Blockchain collaborators: web3 client and raw log decoding.
"""

from .abi import POOL_CREATED_TOPIC, SWAP_TOPIC, decode_pool_created, decode_swap_log
from .client import Web3ChainClient

__all__ = [
    "POOL_CREATED_TOPIC",
    "SWAP_TOPIC",
    "Web3ChainClient",
    "decode_pool_created",
    "decode_swap_log",
]
