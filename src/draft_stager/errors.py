"""Error taxonomy for draft staging.

Every failure carries a ``retryable`` flag so the orchestrator can decide
whether to re-run the whole page sequence without looking at messages.
Only channel-level failures are retryable.
"""

from __future__ import annotations

from typing import Any


class DraftStagingError(Exception):
    """Base class for all draft staging failures."""

    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class TargetUnavailable(DraftStagingError):
    """No debuggable page appeared on the CDP endpoint before the deadline."""


class ChannelClosed(DraftStagingError):
    """The debugger WebSocket closed, errored, or could not be opened."""

    retryable = True


class RemoteError(DraftStagingError):
    """The browser answered a command with an error payload."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.code = code


class ComposerNotReady(DraftStagingError):
    """The composer text surface or file input never became available."""


class SelectionFailed(DraftStagingError):
    """A model or thinking-level menu selection did not succeed."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"selection failed: {reason}", details)
        self.reason = reason


class PromptInjectionFailed(DraftStagingError):
    """The prompt text could not be written into the composer."""


class AttachmentMissing(DraftStagingError):
    """An attachment path does not exist or is not readable."""


class NoFileInput(DraftStagingError):
    """No file input element could be resolved in the page."""


class AttachmentTimeout(DraftStagingError):
    """Attachments were not fully visible in the composer before the deadline."""
