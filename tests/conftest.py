"""Shared fixtures for draft-stager tests."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from draft_stager.config import Timings


class FakeWebSocket:
    """In-memory stand-in for a ``websockets`` client connection.

    Frames fed with ``feed`` are yielded by async iteration; ``drop`` ends
    the iteration like a clean close and ``fail`` raises from it.
    """

    def __init__(self, responder: Callable[[dict], Any] | None = None) -> None:
        self.sent: list[dict] = []
        self.responder = responder
        self.closed = False
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionError("socket is closed")
        message = json.loads(data)
        self.sent.append(message)
        if self.responder is not None:
            reply = self.responder(message)
            if reply is not None:
                self.feed(reply)

    def feed(self, message: dict | str) -> None:
        self._incoming.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def drop(self) -> None:
        self._incoming.put_nowait(None)

    def fail(self, exc: BaseException) -> None:
        self._incoming.put_nowait(exc)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._incoming.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True
        self.drop()


class FakePage:
    """Scripted stand-in for ``PageEvaluator``.

    Each expression is routed to the first handler whose marker it contains.
    """

    # Markers that identify each page script
    READINESS = "ready: Boolean(textarea && fileInput)"
    ATTACHMENT_STATE = "composerText: ((root"
    SET_PROMPT = "const PROMPT ="
    MODEL_LABEL = "return button ? (button.textContent"
    MODEL_MENU = "collectModelMenu"
    CLICK_MODEL = "clickModelOption"
    DIAGNOSTICS = "detectTemporaryChat"
    THINKING_CHIP = "openThinkingChip"
    THINKING_MENU = "collectThinkingMenu"
    CLICK_THINKING = "clickThinkingOption"
    DISMISS = "key: 'Escape'"

    def __init__(self) -> None:
        self.routes: list[tuple[str, Any]] = []
        self.expressions: list[str] = []
        self.handle: dict[str, Any] | None = {"type": "object", "objectId": "file-input-1"}
        self.channel = MagicMock()
        self.channel.call = AsyncMock(return_value={})

    @staticmethod
    def constant(expression: str, name: str) -> Any:
        """Read a JSON constant injected at the top of a page script."""
        match = re.search(rf"const {name} = (.*);\n", expression)
        assert match, f"{name} not found in script"
        return json.loads(match.group(1))

    def on(self, marker: str, handler: Any) -> None:
        self.routes.append((marker, handler))

    def count(self, marker: str) -> int:
        return sum(1 for e in self.expressions if marker in e)

    async def evaluate(self, expression: str) -> Any:
        self.expressions.append(expression)
        for marker, handler in self.routes:
            if marker in expression:
                return handler(expression) if callable(handler) else handler
        raise AssertionError(f"unexpected page script: {expression[:120]}")

    async def evaluate_handle(self, expression: str) -> dict[str, Any] | None:
        self.expressions.append(expression)
        return self.handle


@pytest.fixture
def make_ws():
    """Return the fake WebSocket class for building connections in tests."""
    return FakeWebSocket


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def fast_timings() -> Timings:
    """Timings short enough that every wait loop finishes in well under a second."""
    return Timings(
        target_poll_interval=0.01,
        created_target_wait=0.1,
        created_target_poll_interval=0.01,
        attach_attempts=3,
        attach_retry_delay=0,
        ready_poll_interval=0.01,
        menu_initial_wait=0,
        menu_reopen_interval=0.02,
        menu_max_wait=0.2,
        thinking_poll_interval=0.01,
        thinking_max_wait=0.1,
        attachment_poll_interval=0.01,
        attachment_min_wait=0.1,
    )
