"""Wait for the composer to become interactive."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.errors import ComposerNotReady
from draft_stager.page import scripts

logger = logging.getLogger(__name__)


@dataclass
class ReadinessState:
    ready: bool = False
    textarea_ready: bool = False
    file_input_ready: bool = False
    href: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> ReadinessState:
        data = data or {}
        return cls(
            ready=bool(data.get("ready")),
            textarea_ready=bool(data.get("textareaReady")),
            file_input_ready=bool(data.get("fileInputReady")),
            href=data.get("href"),
        )


async def await_composer_ready(
    evaluator: PageEvaluator,
    timeout: float,
    poll_interval: float = 0.3,
) -> ReadinessState:
    """Poll until both the text surface and the file input resolve.

    Raises ``ComposerNotReady`` with the last observed flags on timeout.
    """
    state = ReadinessState()
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        state = ReadinessState.from_json(await evaluator.evaluate(scripts.readiness_expression()))
        if state.ready:
            logger.debug("Composer ready at %s", state.href)
            return state
        await asyncio.sleep(poll_interval)

    raise ComposerNotReady(
        "Composer was not ready for draft staging "
        f"(textarea={str(state.textarea_ready).lower()}, "
        f"fileInput={str(state.file_input_ready).lower()}).",
        details=asdict(state),
    )
