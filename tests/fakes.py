"""In-memory fakes for the chain client, notifier and websocket. No network access."""

import asyncio
import json
from typing import Dict, List, Optional, Tuple

import aiohttp
from eth_abi import encode

from pool_sniper.chain.abi import POOL_CREATED_TOPIC
from pool_sniper.types import PoolCreatedEvent

WALLET = "0x" + "aa" * 20
ROUTER = "0x" + "bb" * 20
FACTORY = "0x" + "cc" * 20
TOKEN = "0x" + "11" * 20
WETH = "0x" + "22" * 20
USDC = "0x" + "33" * 20
POOL = "0x" + "44" * 20


class FakeChainClient:
    """In-memory ChainClient. Set the public attributes to script behavior."""

    def __init__(self, wallet: str = WALLET, signer: Optional[str] = None):
        self.wallet_address = wallet
        self.signer_address = signer or wallet
        self.allowance = 0
        self.balances: Dict[str, int] = {}
        self.swap_amounts: List[Tuple[int, int]] = [(10**16, -5000)]
        self.receipt_status = 1
        self.gas_estimate = 150_000
        self.fail: Dict[str, Exception] = {}
        self.swap_gate: Optional[asyncio.Event] = None

        self.approve_calls: List[tuple] = []
        self.swap_calls: List[tuple] = []
        self.balance_reads = 0
        self._tx = 0

    def _check(self, name: str):
        if name in self.fail:
            raise self.fail[name]

    def _next_hash(self) -> str:
        self._tx += 1
        return "0x" + f"{self._tx:064x}"

    async def get_allowance(self, token, owner, spender):
        await asyncio.sleep(0)
        self._check("get_allowance")
        return self.allowance

    async def get_balance(self, token, owner):
        await asyncio.sleep(0)
        self.balance_reads += 1
        self._check("get_balance")
        return self.balances.get(token.lower(), 0)

    async def send_approve(self, token, spender, amount):
        await asyncio.sleep(0)
        self._check("send_approve")
        self.approve_calls.append((token, spender, amount))
        return self._next_hash()

    async def estimate_swap_gas(self, request):
        await asyncio.sleep(0)
        self._check("estimate_swap_gas")
        return self.gas_estimate

    async def send_swap(self, request, gas_limit):
        self.swap_calls.append((request, gas_limit))
        if self.swap_gate is not None:
            await self.swap_gate.wait()
        self._check("send_swap")
        return self._next_hash()

    async def wait_for_receipt(self, tx_hash, timeout):
        await asyncio.sleep(0)
        self._check("wait_for_receipt")
        return {"status": self.receipt_status, "transactionHash": tx_hash, "blockNumber": 1, "logs": []}

    def decode_swap_amounts(self, receipt):
        self._check("decode_swap_amounts")
        return list(self.swap_amounts)


class RecordingNotifier:
    """Notifier that keeps every alert in memory."""

    def __init__(self):
        self.alerts: List[str] = []
        self.flushed = 0

    def send_alert(self, text: str) -> None:
        self.alerts.append(text)

    async def flush(self) -> None:
        self.flushed += 1


def _address_topic(address: str) -> str:
    return "0x" + "00" * 12 + address[2:].lower()


def pool_created_log(
    token0: str = TOKEN,
    token1: str = WETH,
    fee: int = 3000,
    tick_spacing: int = 60,
    pool: str = POOL,
    removed: bool = False,
) -> dict:
    """Raw PoolCreated log in eth_subscribe wire format."""
    return {
        "address": FACTORY,
        "topics": [
            POOL_CREATED_TOPIC,
            _address_topic(token0),
            _address_topic(token1),
            "0x" + fee.to_bytes(32, "big").hex(),
        ],
        "data": "0x" + encode(["int24", "address"], [tick_spacing, pool.lower()]).hex(),
        "blockNumber": "0x10",
        "transactionHash": "0x" + "ab" * 32,
        "removed": removed,
    }


def make_event(token0: str = TOKEN, token1: str = WETH, pool: str = POOL, fee: int = 3000):
    return PoolCreatedEvent(
        asset_a=token0, asset_b=token1, fee=fee, tick_spacing=60, pool_address=pool
    )


class FakeMessage:
    def __init__(self, type, data=None):
        self.type = type
        self.data = data


def text_frame(payload) -> FakeMessage:
    return FakeMessage(aiohttp.WSMsgType.TEXT, json.dumps(payload))


def notification(log: dict, subscription: str = "0xsub") -> FakeMessage:
    return text_frame(
        {
            "jsonrpc": "2.0",
            "method": "eth_subscription",
            "params": {"subscription": subscription, "result": log},
        }
    )


class FakeWebSocket:
    """
    Scripted websocket.

    With ack=True the first receive() answers the subscribe request; frames
    are then yielded by async iteration, after which the socket "closes".
    """

    def __init__(self, frames=(), ack=True, subscription="0xsub", error=None, ack_body=None):
        self.frames = list(frames)
        self.ack = ack
        self.subscription = subscription
        self.error = error
        self.ack_body = ack_body
        self.sent: List[dict] = []
        self.closed = False

    async def send_json(self, payload):
        self.sent.append(payload)

    async def receive(self, timeout=None):
        if not self.ack:
            return FakeMessage(aiohttp.WSMsgType.CLOSED)
        request_id = self.sent[-1]["id"]
        if self.ack_body is not None:
            return text_frame({"jsonrpc": "2.0", "id": request_id, **self.ack_body})
        if self.error is not None:
            return text_frame({"jsonrpc": "2.0", "id": request_id, "error": self.error})
        return text_frame({"jsonrpc": "2.0", "id": request_id, "result": self.subscription})

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            await asyncio.sleep(0)
            yield frame

    def exception(self):
        return RuntimeError("socket error")

    async def close(self):
        self.closed = True


class _ConnectContext:
    def __init__(self, ws):
        self.ws = ws

    async def __aenter__(self):
        if isinstance(self.ws, Exception):
            raise self.ws
        return self.ws

    async def __aexit__(self, *exc):
        if not isinstance(self.ws, Exception):
            await self.ws.close()
        return False


class FakeSession:
    """Hands out sockets from `sockets`; once exhausted, every connect fails."""

    def __init__(self, sockets=()):
        self.sockets = list(sockets)
        self.connects = 0
        self.closed = False

    def ws_connect(self, url, **kwargs):
        self.connects += 1
        if self.sockets:
            return _ConnectContext(self.sockets.pop(0))
        return _ConnectContext(aiohttp.ClientConnectionError("connection refused"))

    async def close(self):
        self.closed = True

