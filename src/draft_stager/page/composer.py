"""Write prompt text into the composer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.page import scripts


@dataclass
class PromptResult:
    ok: bool
    mode: str | None = None
    length: int = 0
    reason: str | None = None
    message: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> PromptResult:
        if not isinstance(data, dict):
            return cls(ok=False, reason="no-result")
        return cls(
            ok=bool(data.get("ok")),
            mode=data.get("mode"),
            length=int(data.get("length") or 0),
            reason=data.get("reason"),
            message=data.get("message"),
        )


async def set_prompt(evaluator: PageEvaluator, text: str) -> PromptResult:
    """Replace the composer contents with *text*.

    A plain ``<textarea>`` is written through its native value setter so the
    page's framework sees the change; otherwise the rich editor gets an
    ``insertText`` over a full selection.
    """
    return PromptResult.from_json(await evaluator.evaluate(scripts.set_prompt_expression(text)))
