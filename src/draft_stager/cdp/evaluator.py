"""Run JavaScript in the page over an RPC channel."""

from __future__ import annotations

from typing import Any

from draft_stager.cdp.channel import RpcChannel
from draft_stager.errors import RemoteError


class PageEvaluator:
    """The only way components touch the live DOM.

    ``evaluate`` returns plain JSON values. ``evaluate_handle`` returns a
    remote object reference for APIs that cannot take values, such as
    ``DOM.setFileInputFiles``. Handles must be used immediately; the page can
    re-render at any time.
    """

    def __init__(self, channel: RpcChannel) -> None:
        self._channel = channel

    @property
    def channel(self) -> RpcChannel:
        return self._channel

    async def _run(self, expression: str, by_value: bool) -> dict[str, Any]:
        response = await self._channel.call(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": by_value,
                "awaitPromise": True,
            },
        )
        details = response.get("exceptionDetails")
        if details:
            exception = details.get("exception") or {}
            message = exception.get("description") or details.get("text") or "evaluation failed"
            raise RemoteError(f"Page script threw: {message}", details=details)
        return response.get("result") or {}

    async def evaluate(self, expression: str) -> Any:
        """Evaluate *expression* and return its JSON value."""
        result = await self._run(expression, by_value=True)
        return result.get("value")

    async def evaluate_handle(self, expression: str) -> dict[str, Any] | None:
        """Evaluate *expression* and return the remote object, or None if empty."""
        result = await self._run(expression, by_value=False)
        return result or None
