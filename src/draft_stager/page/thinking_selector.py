"""Reasoning-effort ("thinking time") selection from the composer chip menu."""

from __future__ import annotations

import asyncio
import logging
import time

from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.config import Timings
from draft_stager.page import scripts
from draft_stager.page.matching import MenuCandidate, find_level_option
from draft_stager.page.selection import SelectionResult, SelectionStatus

logger = logging.getLogger(__name__)


class ThinkingSelector:
    def __init__(self, evaluator: PageEvaluator, timings: Timings | None = None) -> None:
        self._evaluator = evaluator
        self._timings = timings or Timings()

    async def select_thinking_level(self, level: str) -> SelectionResult:
        """Open the thinking chip and pick the entry containing *level*."""
        level = (level or "extended").lower()
        chip = await self._evaluator.evaluate(scripts.open_thinking_chip_expression()) or {}
        if not chip.get("found"):
            return SelectionResult(SelectionStatus.CHIP_NOT_FOUND)

        await asyncio.sleep(self._timings.menu_initial_wait)
        deadline = time.monotonic() + self._timings.thinking_max_wait

        while True:
            menu = await self._evaluator.evaluate(scripts.thinking_menu_expression()) or {}
            if menu.get("menuFound"):
                break
            if time.monotonic() > deadline:
                return SelectionResult(SelectionStatus.MENU_NOT_FOUND)
            await asyncio.sleep(self._timings.thinking_poll_interval)

        options = [MenuCandidate.from_json(o) for o in menu.get("options") or []]
        option = find_level_option(options, level)
        if option is None:
            return SelectionResult(
                SelectionStatus.OPTION_NOT_FOUND,
                hint={"availableOptions": [o.label for o in options if o.label]},
            )

        if option.selected:
            await self._evaluator.evaluate(scripts.dismiss_menu_expression())
            return SelectionResult(SelectionStatus.ALREADY_SELECTED, label=option.label or None)

        clicked = await self._evaluator.evaluate(
            scripts.click_thinking_option_expression(option.index, option.label)
        )
        if not (clicked and clicked.get("clicked")):
            logger.debug("Thinking option %r moved before it could be clicked", option.label)
            return SelectionResult(SelectionStatus.OPTION_NOT_FOUND, hint={"label": option.label})
        return SelectionResult(SelectionStatus.SWITCHED, label=option.label or None)
