"""Model selection through the model switcher menu."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.config import ScoringWeights, Timings
from draft_stager.page import scripts
from draft_stager.page.matching import (
    MenuCandidate,
    ScoredCandidate,
    build_matcher,
    label_satisfies,
    rank_candidates,
)
from draft_stager.page.selection import SelectionResult, SelectionStatus

logger = logging.getLogger(__name__)


class ModelSelector:
    """Opens the model menu, clicks the best-ranked entry and verifies the result.

    The menu is re-read on every pass. A click only counts once the switcher
    button's own label reflects the requested version and modifiers.
    """

    def __init__(
        self,
        evaluator: PageEvaluator,
        timings: Timings | None = None,
        weights: ScoringWeights | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._timings = timings or Timings()
        self._weights = weights or ScoringWeights()

    async def current_model(self) -> str | None:
        """Return the switcher button's label without touching the menu."""
        return await self._evaluator.evaluate(scripts.model_label_expression())

    async def _snapshot(self, open_menu: bool) -> dict[str, Any]:
        return await self._evaluator.evaluate(scripts.model_menu_expression(open_menu)) or {}

    async def _click(self, best: ScoredCandidate) -> bool:
        candidate = best.candidate
        result = await self._evaluator.evaluate(
            scripts.click_model_option_expression(candidate.index, candidate.label, candidate.testid)
        )
        return bool(result and result.get("clicked"))

    async def _diagnostics(self) -> dict[str, Any]:
        return await self._evaluator.evaluate(scripts.menu_diagnostics_expression()) or {}

    async def select_model(self, target_label: str) -> SelectionResult:
        timings = self._timings
        matcher = build_matcher(target_label)

        snapshot = await self._snapshot(open_menu=False)
        if not snapshot.get("buttonFound"):
            return SelectionResult(SelectionStatus.BUTTON_MISSING)
        if label_satisfies(snapshot.get("label"), matcher):
            return SelectionResult(SelectionStatus.ALREADY_SELECTED, label=snapshot.get("label"))

        start = time.monotonic()
        deadline = start + timings.menu_max_wait
        last_click = 0.0
        snapshot = await self._snapshot(open_menu=True)
        if snapshot.get("clickedButton"):
            last_click = time.monotonic()
        await asyncio.sleep(timings.menu_initial_wait)

        while True:
            reopen = time.monotonic() - last_click > timings.menu_reopen_interval
            snapshot = await self._snapshot(open_menu=reopen)
            if snapshot.get("clickedButton"):
                last_click = time.monotonic()

            candidates = [MenuCandidate.from_json(o) for o in snapshot.get("options") or []]
            ranked = rank_candidates(candidates, matcher, self._weights)
            if ranked:
                best = ranked[0]
                logger.debug(
                    "Best model option %r (testid=%r, score=%d)", best.label, best.testid, best.score
                )
                if best.candidate.selected:
                    label = snapshot.get("label") or best.label
                    return SelectionResult(SelectionStatus.ALREADY_SELECTED, label=label)
                # A submenu click only reveals more entries; rank again next pass.
                if await self._click(best) and not best.candidate.is_submenu:
                    await asyncio.sleep(max(0.12, timings.menu_initial_wait))
                    label = await self.current_model()
                    if label_satisfies(label, matcher):
                        return SelectionResult(SelectionStatus.SWITCHED, label=label or best.label)

            if time.monotonic() > deadline:
                hint = await self._diagnostics()
                return SelectionResult(SelectionStatus.OPTION_NOT_FOUND, hint=hint)
            await asyncio.sleep(timings.menu_reopen_interval / 2)
