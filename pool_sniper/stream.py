"""
Websocket subscription to factory PoolCreated logs.

Speaks raw JSON-RPC (eth_subscribe "logs") over an aiohttp websocket and
pushes decoded PoolCreatedEvent objects into an asyncio.Queue. The business
logic only ever sees the queue, so the socket can come and go underneath it.

Reconnect policy:
  - Every close or transport error tears the socket down completely
  - While attempt < max_attempts: attempt += 1, wait `delay`, reconnect
  - An acknowledged subscription resets attempt to 0
  - Otherwise ReconnectExhaustedError is raised to the caller
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from itertools import count
from typing import Any, Callable, Dict, Mapping, Optional

import aiohttp

from .chain.abi import POOL_CREATED_TOPIC, decode_pool_created
from .exceptions import ReconnectExhaustedError, StreamConnectionError
from .types import PoolCreatedEvent

logger = logging.getLogger(__name__)

SUBSCRIBE_TIMEOUT_SECONDS = 15.0
HEARTBEAT_SECONDS = 30.0


@dataclass
class ReconnectPolicy:
    """Bounded retry budget for the stream connection."""

    max_attempts: int = 10
    delay: float = 5.0
    attempt: int = 0

    def record_success(self):
        self.attempt = 0

    def next_attempt(self) -> bool:
        """
        Spend one retry from the budget.

        Returns:
            True if a reconnect should be attempted, False once exhausted
        """
        if self.attempt < self.max_attempts:
            self.attempt += 1
            return True
        return False


class StreamConnection:
    """
    Long-lived PoolCreated subscription with bounded reconnects.

    Only one socket is ever open: the previous one is always closed before
    the next connect, so events are never delivered twice by overlapping
    subscriptions.
    """

    def __init__(
        self,
        ws_url: str,
        factory_address: str,
        queue: "asyncio.Queue[PoolCreatedEvent]",
        policy: Optional[ReconnectPolicy] = None,
        decoder: Callable[[Mapping[str, Any]], PoolCreatedEvent] = decode_pool_created,
        session: Optional[aiohttp.ClientSession] = None,
        subscribe_timeout: float = SUBSCRIBE_TIMEOUT_SECONDS,
    ):
        self.ws_url = ws_url
        self.factory_address = factory_address
        self.queue = queue
        self.policy = policy or ReconnectPolicy()
        self.decoder = decoder
        self.subscribe_timeout = subscribe_timeout

        self._session = session
        self._owns_session = session is None
        self._ws = None
        self._request_ids = count(1)

        self.subscription_id: Optional[str] = None
        self.connected = False

        # Stats
        self.connect_count = 0
        self.events_delivered = 0
        self.frames_skipped = 0

    async def run(self):
        """
        Connect and keep reconnecting until the budget runs out.

        Raises:
            ReconnectExhaustedError: When a close happens with no retries left
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()
        try:
            while True:
                try:
                    await self.connect()
                    reason = "closed by remote"
                except (
                    StreamConnectionError,
                    aiohttp.ClientError,
                    asyncio.TimeoutError,
                    OSError,
                ) as e:
                    reason = str(e) or type(e).__name__

                logger.warning(f"WebSocket disconnected: {reason}")

                if not self.policy.next_attempt():
                    logger.error("Reconnect limit reached. Stopping stream.")
                    raise ReconnectExhaustedError(
                        f"WebSocket reconnect limit reached after "
                        f"{self.policy.max_attempts} attempts",
                        attempts=self.policy.max_attempts,
                        details={"last_reason": reason},
                    )

                logger.info(
                    f"Reconnecting in {self.policy.delay:g}s... "
                    f"attempt {self.policy.attempt}/{self.policy.max_attempts}"
                )
                await asyncio.sleep(self.policy.delay)
        finally:
            await self.close()

    async def connect(self):
        """
        Open a socket, subscribe, and pump frames until it closes.

        Returns normally when the remote closes the socket. Raises
        StreamConnectionError on transport errors or a rejected subscription.
        """
        await self._teardown()

        async with self._session.ws_connect(
            self.ws_url, heartbeat=HEARTBEAT_SECONDS
        ) as ws:
            self._ws = ws
            try:
                self.subscription_id = await self._subscribe(ws)
                self.connected = True
                self.connect_count += 1
                self.policy.record_success()
                logger.info(
                    f"WebSocket connected. Waiting for pool creation events "
                    f"(subscription {self.subscription_id})..."
                )

                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._handle_frame(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        raise StreamConnectionError(
                            f"WebSocket error: {ws.exception()}", endpoint=self.ws_url
                        )
                    elif msg.type in (
                        aiohttp.WSMsgType.CLOSE,
                        aiohttp.WSMsgType.CLOSING,
                        aiohttp.WSMsgType.CLOSED,
                    ):
                        break
            finally:
                self.connected = False
                self.subscription_id = None
                self._ws = None

    async def close(self):
        """Close the socket and, if we created it, the HTTP session."""
        await self._teardown()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _teardown(self):
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            await ws.close()
        self.connected = False

    async def _subscribe(self, ws) -> str:
        request_id = next(self._request_ids)
        await ws.send_json(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "method": "eth_subscribe",
                "params": [
                    "logs",
                    {"address": self.factory_address, "topics": [POOL_CREATED_TOPIC]},
                ],
            }
        )

        while True:
            msg = await ws.receive(timeout=self.subscribe_timeout)
            if msg.type != aiohttp.WSMsgType.TEXT:
                raise StreamConnectionError(
                    f"Socket closed before subscription was acknowledged ({msg.type})",
                    endpoint=self.ws_url,
                )

            try:
                payload = json.loads(msg.data)
            except json.JSONDecodeError:
                continue
            if not isinstance(payload, dict) or payload.get("id") != request_id:
                continue
            if "error" in payload:
                raise StreamConnectionError(
                    f"eth_subscribe rejected: {payload['error']}",
                    endpoint=self.ws_url,
                    details={"error": payload["error"]},
                )
            subscription_id = payload.get("result")
            if not isinstance(subscription_id, str) or not subscription_id:
                raise StreamConnectionError(
                    "eth_subscribe returned no subscription id",
                    endpoint=self.ws_url,
                    details={"response": payload},
                )
            return subscription_id

    def _handle_frame(self, raw: str):
        try:
            payload: Dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError as e:
            self.frames_skipped += 1
            logger.warning(f"Dropping non-JSON frame: {e}")
            return

        if not isinstance(payload, dict):
            self.frames_skipped += 1
            logger.warning(f"Dropping non-object frame: {raw[:100]}")
            return

        if payload.get("method") != "eth_subscription":
            return

        params = payload.get("params")
        if not isinstance(params, dict):
            self.frames_skipped += 1
            logger.warning(f"Dropping notification with malformed params: {raw[:100]}")
            return
        if params.get("subscription") != self.subscription_id:
            self.frames_skipped += 1
            logger.debug(f"Ignoring frame for stale subscription {params.get('subscription')}")
            return

        log = params.get("result")
        if not isinstance(log, dict):
            self.frames_skipped += 1
            logger.warning(f"Dropping notification without a log object: {raw[:100]}")
            return

        if log.get("removed"):
            logger.info(f"Ignoring removed (reorged) log {log.get('transactionHash')}")
            return

        try:
            event = self.decoder(log)
        except Exception as e:
            self.frames_skipped += 1
            logger.warning(f"Could not decode PoolCreated log: {e}")
            return

        self.events_delivered += 1
        self.queue.put_nowait(event)
