"""Tests for thinking-level selection."""

import pytest

from draft_stager.page import scripts
from draft_stager.page.selection import SelectionStatus
from draft_stager.page.thinking_selector import ThinkingSelector

LEVELS = [
    {"index": 0, "label": "Thinking time", "testid": "", "selected": False},
    {"index": 1, "label": "Standard", "testid": "", "selected": True},
    {"index": 2, "label": "Extended", "testid": "", "selected": False},
]


@pytest.fixture
def selector(page, fast_timings):
    return ThinkingSelector(page, fast_timings)


@pytest.fixture
def chip_found(page):
    page.on(page.THINKING_CHIP, {"found": True, "label": "Pro"})


class TestThinkingSelector:
    async def test_switches_level(self, page, selector, chip_found):
        clicks = []
        page.on(page.THINKING_MENU, {"menuFound": True, "options": LEVELS})
        page.on(
            page.CLICK_THINKING,
            lambda expr: clicks.append((page.constant(expr, "INDEX"), page.constant(expr, "LABEL")))
            or {"clicked": True},
        )

        result = await selector.select_thinking_level("Extended")

        assert result.status == SelectionStatus.SWITCHED
        assert result.label == "Extended"
        assert clicks == [(2, "Extended")]

    async def test_selected_level_is_dismissed_not_clicked(self, page, selector, chip_found):
        page.on(page.THINKING_MENU, {"menuFound": True, "options": LEVELS})
        page.on(page.DISMISS, True)

        result = await selector.select_thinking_level("standard")

        assert result.status == SelectionStatus.ALREADY_SELECTED
        assert result.label == "Standard"
        assert page.count(page.DISMISS) == 1
        assert page.count(page.CLICK_THINKING) == 0

    async def test_menu_appears_after_polling(self, page, selector, chip_found):
        snapshots = iter([{"menuFound": False, "options": []}] * 3)
        page.on(
            page.THINKING_MENU,
            lambda expr: next(snapshots, {"menuFound": True, "options": LEVELS}),
        )
        page.on(page.CLICK_THINKING, {"clicked": True})

        result = await selector.select_thinking_level("extended")

        assert result.status == SelectionStatus.SWITCHED
        assert page.count(page.THINKING_MENU) == 4

    async def test_chip_not_found(self, page, selector):
        page.on(page.THINKING_CHIP, {"found": False})

        result = await selector.select_thinking_level("extended")

        assert result.status == SelectionStatus.CHIP_NOT_FOUND
        assert page.count(page.THINKING_MENU) == 0

    async def test_menu_not_found(self, page, selector, chip_found):
        page.on(page.THINKING_MENU, {"menuFound": False, "options": []})

        result = await selector.select_thinking_level("extended")

        assert result.status == SelectionStatus.MENU_NOT_FOUND

    async def test_option_not_found_lists_levels(self, page, selector, chip_found):
        page.on(page.THINKING_MENU, {"menuFound": True, "options": LEVELS})

        result = await selector.select_thinking_level("heavy")

        assert result.status == SelectionStatus.OPTION_NOT_FOUND
        assert result.hint == {"availableOptions": ["Thinking time", "Standard", "Extended"]}

    async def test_click_rejected(self, page, selector, chip_found):
        page.on(page.THINKING_MENU, {"menuFound": True, "options": LEVELS})
        page.on(page.CLICK_THINKING, {"clicked": False})

        result = await selector.select_thinking_level("extended")

        assert result.status == SelectionStatus.OPTION_NOT_FOUND
        assert result.hint == {"label": "Extended"}


class TestThinkingChipScript:
    def test_pro_chip_matches_whole_word_only(self):
        expression = scripts.open_thinking_chip_expression()
        assert "const hasWord = (text, word) => text.split(' ').includes(word);" in expression
        assert "hasWord(text, 'pro')" in expression
        assert "hasWord(aria, 'pro')" in expression
        assert "includes('pro')" not in expression
