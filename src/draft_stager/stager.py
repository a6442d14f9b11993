"""End-to-end draft staging with attempt-level retry on channel failures."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from draft_stager.cdp import DebugTarget, PageEvaluator, RpcChannel, TargetLocator
from draft_stager.config import Settings
from draft_stager.errors import (
    ChannelClosed,
    DraftStagingError,
    PromptInjectionFailed,
    SelectionFailed,
)
from draft_stager.page import (
    AttachmentUploader,
    ModelSelector,
    PromptResult,
    SelectionResult,
    ThinkingSelector,
    await_composer_ready,
    resolve_attachments,
    set_prompt,
)

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[str], Awaitable[RpcChannel]]


@dataclass
class DraftReport:
    """What one successful staging run left in the tab."""

    target: DebugTarget
    model: SelectionResult | None
    thinking: SelectionResult | None
    prompt: PromptResult | None
    attached: int


class DraftStager:
    """Runs the staging sequence against one tab.

    Steps are strictly sequential (readiness, model, thinking level, prompt,
    attachments) because each depends on the DOM state the previous one left.
    Only ``retryable`` errors restart the sequence.
    """

    def __init__(
        self,
        settings: Settings,
        locator: TargetLocator | None = None,
        channel_factory: ChannelFactory | None = None,
    ) -> None:
        self._settings = settings
        timings = settings.timings
        self._locator = locator or TargetLocator(
            settings.get_cdp_base_url(),
            timeout=settings.timeout,
            poll_interval=timings.target_poll_interval,
            created_wait=timings.created_target_wait,
            created_poll_interval=timings.created_target_poll_interval,
        )
        self._channel_factory = channel_factory or RpcChannel.connect

    async def run(self) -> DraftReport:
        settings = self._settings
        attachments = resolve_attachments(settings.get_attachment_paths())

        attempt = 1
        while True:
            try:
                if attempt > 1:
                    logger.warning(
                        f"Draft staging retry {attempt}/{settings.max_attempts} after socket disconnect."
                    )
                return await self._stage_once(attachments)
            except DraftStagingError as e:
                if not e.retryable or attempt >= settings.max_attempts:
                    raise
                logger.debug(f"Attempt {attempt} failed: {e}")
                await asyncio.sleep(settings.retry_backoff * attempt)
                attempt += 1

    async def _attach(self) -> tuple[DebugTarget, RpcChannel]:
        """Locate a tab and open its debugger socket, re-locating on failure."""
        timings = self._settings.timings
        last_error: ChannelClosed | None = None
        for _ in range(timings.attach_attempts):
            target = await self._locator.ensure_target(self._settings.url)
            try:
                return target, await self._channel_factory(target.websocket_url or "")
            except ChannelClosed as e:
                last_error = e
                logger.debug(f"Could not attach to tab {target.id}: {e}")
                await asyncio.sleep(timings.attach_retry_delay)
        raise last_error or ChannelClosed("Unable to attach to target via CDP")

    async def _stage_once(self, attachments: list[str]) -> DraftReport:
        settings = self._settings
        timings = settings.timings
        target, channel = await self._attach()

        async with channel:
            for method in ("Page.enable", "Runtime.enable", "DOM.enable", "Page.bringToFront"):
                await channel.call(method)

            evaluator = PageEvaluator(channel)
            await await_composer_ready(
                evaluator, settings.timeout, poll_interval=timings.ready_poll_interval
            )

            model_selector = ModelSelector(evaluator, timings, settings.weights)
            model = await self._non_fatal(
                "model", settings.model, model_selector.select_model(settings.model)
            )

            thinking_selector = ThinkingSelector(evaluator, timings)
            thinking = await self._non_fatal(
                "thinking", settings.thinking, thinking_selector.select_thinking_level(settings.thinking)
            )

            prompt: PromptResult | None = None
            if settings.prompt:
                prompt = await set_prompt(evaluator, settings.prompt)
                if not prompt.ok:
                    message = f"Draft prompt could not be set ({prompt.reason})"
                    if prompt.message:
                        message += f": {prompt.message}"
                    raise PromptInjectionFailed(
                        message, details={"reason": prompt.reason, "message": prompt.message}
                    )
                logger.info(
                    f"Draft prompt prefilled in composer ({prompt.length} chars, mode={prompt.mode})."
                )

            uploader = AttachmentUploader(
                evaluator,
                timeout=max(timings.attachment_min_wait, settings.timeout / 2),
                poll_interval=timings.attachment_poll_interval,
            )
            attached = await uploader.upload_files(attachments)

        logger.info(
            f"Draft prepared in tab {target.id}: attachments staged ({attached}/{len(attachments)})."
        )
        return DraftReport(target=target, model=model, thinking=thinking, prompt=prompt, attached=attached)

    async def _non_fatal(
        self, kind: str, wanted: str, selection: Awaitable[SelectionResult]
    ) -> SelectionResult | None:
        """Run a menu selection, downgrading its failures to warnings.

        A wrong model or thinking level can be fixed by hand in the staged
        draft, so only channel failures propagate.
        """
        try:
            result = await selection
        except DraftStagingError as e:
            if e.retryable:
                raise
            self._warn_selection(kind, wanted, {"reason": "selection-error", "message": str(e)})
            return None

        try:
            result.raise_for_status()
        except SelectionFailed as e:
            self._warn_selection(kind, wanted, e.details)
        else:
            logger.info(f"Draft {kind} selected: {result.label or wanted}")
        return result

    @staticmethod
    def _warn_selection(kind: str, wanted: str, details: dict) -> None:
        logger.warning(
            f"Draft {kind} selection warning ({wanted}): {json.dumps(details, default=str)}"
        )
