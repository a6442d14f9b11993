"""Draft Stager - stage a ChatGPT draft over the Chrome DevTools Protocol without sending it."""

import asyncio
import logging
import sys

from pydantic import ValidationError
from pydantic_settings import SettingsError

from draft_stager.config import Settings
from draft_stager.errors import DraftStagingError
from draft_stager.stager import DraftReport, DraftStager

logger = logging.getLogger(__name__)

__all__ = ["DraftReport", "DraftStager", "Settings", "main", "run_stager"]


async def run_stager() -> int:
    """Stage one draft from environment settings; return the process exit code."""
    try:
        settings = Settings()
    except (ValidationError, SettingsError) as e:
        logger.error(f"Draft staging failed: invalid settings: {e}")
        return 1

    logger.info(
        f"Staging draft at {settings.url} via {settings.get_cdp_base_url()} "
        f"(model={settings.model}, thinking={settings.thinking})"
    )
    try:
        await DraftStager(settings).run()
    except DraftStagingError as e:
        logger.error(f"Draft staging failed: {e}")
        return 1
    return 0


def main() -> None:
    """Entry point for the draft stager."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(run_stager()))
