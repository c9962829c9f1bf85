"""
Minimal Uniswap V3 / ERC20 ABIs and raw log decoding.
"""

from typing import Any, Mapping, Optional, Tuple

from eth_abi import decode
from hexbytes import HexBytes
from web3 import Web3

from ..types import PoolCreatedEvent

POOL_CREATED_SIGNATURE = "PoolCreated(address,address,uint24,int24,address)"
SWAP_SIGNATURE = "Swap(address,address,int256,int256,uint160,uint128,int24)"

POOL_CREATED_TOPIC = Web3.to_hex(Web3.keccak(text=POOL_CREATED_SIGNATURE))
SWAP_TOPIC = Web3.to_hex(Web3.keccak(text=SWAP_SIGNATURE))

# ERC20 ABI (minimal)
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

# Uniswap V3 SwapRouter ABI (exactInputSingle only)
SWAP_ROUTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {"internalType": "address", "name": "recipient", "type": "address"},
                    {"internalType": "uint256", "name": "deadline", "type": "uint256"},
                    {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
                    {
                        "internalType": "uint256",
                        "name": "amountOutMinimum",
                        "type": "uint256",
                    },
                    {
                        "internalType": "uint160",
                        "name": "sqrtPriceLimitX96",
                        "type": "uint160",
                    },
                ],
                "internalType": "struct ISwapRouter.ExactInputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "exactInputSingle",
        "outputs": [{"internalType": "uint256", "name": "amountOut", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    }
]


def _topic_address(topic: Any) -> str:
    return Web3.to_checksum_address(HexBytes(topic)[-20:])


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 16)
    return int(value)


def decode_pool_created(log: Mapping[str, Any]) -> PoolCreatedEvent:
    """
    Decode a raw PoolCreated log (as delivered by eth_subscribe or eth_getLogs).

    Raises:
        ValueError: If the log is not a PoolCreated event or is malformed
    """
    topics = [HexBytes(t) for t in log.get("topics", [])]
    if len(topics) != 4 or Web3.to_hex(topics[0]) != POOL_CREATED_TOPIC:
        raise ValueError("Log is not a PoolCreated event")

    tick_spacing, pool = decode(["int24", "address"], HexBytes(log.get("data", "0x")))
    tx_hash = log.get("transactionHash")

    return PoolCreatedEvent(
        asset_a=_topic_address(topics[1]),
        asset_b=_topic_address(topics[2]),
        fee=int.from_bytes(topics[3], "big"),
        tick_spacing=tick_spacing,
        pool_address=Web3.to_checksum_address(pool),
        block_number=_to_int(log.get("blockNumber")),
        transaction_hash=Web3.to_hex(HexBytes(tx_hash)) if tx_hash else None,
    )


def decode_swap_log(log: Mapping[str, Any]) -> Tuple[int, int]:
    """
    Decode (amount0, amount1) from a pool Swap log.

    Raises:
        ValueError: If the log is not a Swap event
    """
    topics = log.get("topics", [])
    if not topics or Web3.to_hex(HexBytes(topics[0])) != SWAP_TOPIC:
        raise ValueError("Log is not a Swap event")

    amount0, amount1, _, _, _ = decode(
        ["int256", "int256", "uint160", "uint128", "int24"], HexBytes(log["data"])
    )
    return amount0, amount1
