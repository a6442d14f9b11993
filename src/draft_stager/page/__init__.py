"""Composer automation: readiness, menu selection, prompt and attachments."""

from draft_stager.page.attachments import AttachmentUploader, resolve_attachments
from draft_stager.page.composer import PromptResult, set_prompt
from draft_stager.page.model_selector import ModelSelector
from draft_stager.page.readiness import ReadinessState, await_composer_ready
from draft_stager.page.selection import SelectionResult, SelectionStatus
from draft_stager.page.thinking_selector import ThinkingSelector

__all__ = [
    "AttachmentUploader",
    "ModelSelector",
    "PromptResult",
    "ReadinessState",
    "SelectionResult",
    "SelectionStatus",
    "ThinkingSelector",
    "await_composer_ready",
    "resolve_attachments",
    "set_prompt",
]
