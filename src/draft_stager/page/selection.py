"""Result type shared by the model and thinking-level selectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from draft_stager.errors import SelectionFailed


class SelectionStatus(str, Enum):
    ALREADY_SELECTED = "already-selected"
    SWITCHED = "switched"
    BUTTON_MISSING = "button-missing"
    CHIP_NOT_FOUND = "chip-not-found"
    MENU_NOT_FOUND = "menu-not-found"
    OPTION_NOT_FOUND = "option-not-found"


@dataclass
class SelectionResult:
    status: SelectionStatus
    label: str | None = None
    hint: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in (SelectionStatus.ALREADY_SELECTED, SelectionStatus.SWITCHED)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.label is not None:
            data["label"] = self.label
        if self.hint:
            data["hint"] = self.hint
        return data

    def raise_for_status(self) -> None:
        """Raise ``SelectionFailed`` unless the selection succeeded."""
        if not self.ok:
            raise SelectionFailed(self.status.value, details=self.to_dict())
