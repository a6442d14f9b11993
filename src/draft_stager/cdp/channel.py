"""JSON-RPC channel over a tab's debugger WebSocket."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from draft_stager.errors import ChannelClosed, RemoteError

logger = logging.getLogger(__name__)


class RpcChannel:
    """One WebSocket connection to a CDP target.

    Responses are routed to callers by message id, so completion order does
    not matter. When the socket goes away every outstanding call fails with
    ``ChannelClosed`` instead of waiting forever.

    Usage::

        channel = await RpcChannel.connect(target.websocket_url)
        async with channel:
            await channel.call("Page.enable")
    """

    def __init__(self, ws: Any) -> None:
        self._ws = ws
        self._next_id = 0
        self._pending: dict[int, asyncio.Future[dict[str, Any]]] = {}
        self._closed_error: ChannelClosed | None = None
        self._recv_task: asyncio.Task[None] | None = None

    @classmethod
    async def connect(cls, ws_url: str, ping_interval: float | None = 20.0) -> RpcChannel:
        """Open the WebSocket and start dispatching responses."""
        try:
            ws = await websockets.connect(ws_url, max_size=None, ping_interval=ping_interval)
        except (OSError, TimeoutError, WebSocketException) as e:
            raise ChannelClosed(f"CDP socket could not be opened: {e}") from e
        channel = cls(ws)
        channel.start()
        logger.debug("CDP channel connected to %s", ws_url)
        return channel

    @property
    def is_closed(self) -> bool:
        return self._closed_error is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        """Start the background receive loop."""
        if self._recv_task is None:
            self._recv_task = asyncio.create_task(self._recv_loop())

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a command and wait for its result."""
        if self._closed_error is not None:
            raise ChannelClosed(str(self._closed_error))

        self._next_id += 1
        msg_id = self._next_id
        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future

        payload = json.dumps({"id": msg_id, "method": method, "params": params or {}})
        try:
            await self._ws.send(payload)
        except Exception as e:
            self._pending.pop(msg_id, None)
            self._fail_pending(ChannelClosed(f"CDP socket error: {e}"))
            raise ChannelClosed(f"CDP socket error while sending {method}: {e}") from e

        try:
            return await future
        finally:
            self._pending.pop(msg_id, None)

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except ValueError:
            return
        if not isinstance(message, dict):
            return
        msg_id = message.get("id")
        if not isinstance(msg_id, int):
            # Unsolicited protocol event
            return

        future = self._pending.pop(msg_id, None)
        if future is None or future.done():
            return
        error = message.get("error")
        if error:
            future.set_exception(
                RemoteError(
                    error.get("message", "CDP command failed"),
                    code=error.get("code"),
                    details=error,
                )
            )
            return
        future.set_result(message.get("result") or {})

    async def _recv_loop(self) -> None:
        reason = "CDP socket closed unexpectedly"
        try:
            async for raw in self._ws:
                self._dispatch(raw)
        except ConnectionClosed:
            pass
        except Exception as e:
            reason = f"CDP socket error: {e}"
            logger.debug("CDP recv loop error: %s", e)
        self._fail_pending(ChannelClosed(reason))

    def _fail_pending(self, error: ChannelClosed) -> None:
        if self._closed_error is None:
            self._closed_error = error
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ChannelClosed(str(error)))

    async def close(self) -> None:
        """Close the socket and stop the receive loop."""
        self._fail_pending(ChannelClosed("CDP channel closed"))
        if self._recv_task is not None:
            self._recv_task.cancel()
            try:
                await self._recv_task
            except asyncio.CancelledError:
                pass
            self._recv_task = None
        try:
            await self._ws.close()
        except Exception as e:
            logger.debug("Error closing CDP socket: %s", e)

    async def __aenter__(self) -> RpcChannel:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
