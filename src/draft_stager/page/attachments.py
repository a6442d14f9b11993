"""Attachment staging through the composer's native file input."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path

from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.errors import AttachmentMissing, AttachmentTimeout, NoFileInput
from draft_stager.page import scripts

logger = logging.getLogger(__name__)


def resolve_attachments(paths: list[str]) -> list[str]:
    """Return absolute paths, failing if any file is missing or unreadable.

    The whole set is checked before any upload starts; a partial set is never
    attempted.
    """
    if not paths:
        raise AttachmentMissing("No draft files provided for upload")
    resolved = []
    for raw in paths:
        path = Path(raw).expanduser().absolute()
        if not path.is_file() or not os.access(path, os.R_OK):
            raise AttachmentMissing(f"Draft attachment missing: {raw}", details={"path": raw})
        resolved.append(str(path))
    return resolved


def _base_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


class AttachmentUploader:
    def __init__(
        self,
        evaluator: PageEvaluator,
        timeout: float = 20.0,
        poll_interval: float = 0.25,
    ) -> None:
        self._evaluator = evaluator
        self._timeout = timeout
        self._poll_interval = poll_interval

    async def upload_files(self, paths: list[str]) -> int:
        """Populate the file input with *paths* and wait until the UI shows them.

        Returns the number of files on the input. Success needs both the
        input's file count and every base name rendered in the composer,
        since the page runs its own upload/preview pipeline after the input
        changes.
        """
        handle = await self._evaluator.evaluate_handle(scripts.file_input_expression())
        object_id = handle.get("objectId") if handle else None
        if not object_id:
            raise NoFileInput("Could not resolve composer file input object for draft upload")

        await self._evaluator.channel.call(
            "DOM.setFileInputFiles", {"objectId": object_id, "files": list(paths)}
        )
        logger.debug("Set %d file(s) on composer input", len(paths))

        expected_names = [name.lower() for name in map(_base_name, paths) if name]
        attached = 0
        names_visible = False
        deadline = time.monotonic() + self._timeout
        while time.monotonic() < deadline:
            state = await self._evaluator.evaluate(scripts.attachment_state_expression()) or {}
            attached = int(state.get("attached") or 0)
            composer_text = str(state.get("composerText") or "").lower()
            names_visible = all(name in composer_text for name in expected_names)
            if attached >= len(paths) and names_visible:
                return attached
            await asyncio.sleep(self._poll_interval)

        raise AttachmentTimeout(
            "Composer attachments not fully visible "
            f"(staged={attached}/{len(paths)}, namesVisible={str(names_visible).lower()})",
            details={"staged": attached, "expected": len(paths), "namesVisible": names_visible},
        )
