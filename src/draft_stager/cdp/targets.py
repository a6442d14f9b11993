"""Debuggable tab discovery and creation via the CDP HTTP endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlparse

import httpx

from draft_stager.errors import TargetUnavailable

logger = logging.getLogger(__name__)


@dataclass
class DebugTarget:
    """One browser tab as reported by ``/json/list`` or ``/json/new``."""

    id: str
    type: str
    url: str
    websocket_url: str | None = None
    title: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> DebugTarget:
        return cls(
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
            url=str(data.get("url", "")),
            websocket_url=data.get("webSocketDebuggerUrl") or None,
            title=str(data.get("title", "")),
        )

    @property
    def is_debuggable_page(self) -> bool:
        return self.type == "page" and bool(self.websocket_url)


def url_host(value: str) -> str:
    try:
        return urlparse(value).netloc
    except ValueError:
        return ""


def url_matches(target_url: str, desired_url: str) -> bool:
    """True when the URLs are identical or share a host."""
    if not target_url:
        return False
    if target_url == desired_url:
        return True
    target_host = url_host(target_url)
    desired_host = url_host(desired_url)
    return bool(target_host and desired_host and target_host == desired_host)


def pick_target(targets: list[DebugTarget], desired_url: str) -> DebugTarget | None:
    """Prefer the last exact match, then the last same-host page, then the last page."""
    pages = [t for t in targets if t.is_debuggable_page]
    exact = [t for t in pages if t.url == desired_url]
    if exact:
        return exact[-1]
    same_host = [t for t in pages if url_matches(t.url, desired_url)]
    if same_host:
        return same_host[-1]
    return pages[-1] if pages else None


class TargetLocator:
    """Finds or opens a debuggable tab for a URL.

    Target creation support (and whether ``/json/new`` accepts ``PUT`` or
    ``GET``) varies across Chrome releases, so creation is attempted first and
    any failure falls back to polling the existing tab list.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 90.0,
        poll_interval: float = 0.3,
        created_wait: float = 6.0,
        created_poll_interval: float = 0.2,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._created_wait = created_wait
        self._created_poll_interval = created_poll_interval
        self._client = client

    async def ensure_target(self, desired_url: str) -> DebugTarget:
        """Return a debuggable page for *desired_url*, creating one if possible."""
        if self._client is not None:
            return await self._ensure_target(self._client, desired_url)
        async with httpx.AsyncClient(base_url=self._base_url) as client:
            return await self._ensure_target(client, desired_url)

    async def _ensure_target(self, client: httpx.AsyncClient, desired_url: str) -> DebugTarget:
        created = await self._open_new_target(client, desired_url)
        if created is not None:
            logger.info("Opened new tab %s at %s", created.id, created.url or desired_url)
            return created

        last_error: str | None = None
        deadline = time.monotonic() + self._timeout
        while time.monotonic() < deadline:
            try:
                existing = pick_target(await self._list_targets(client), desired_url)
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                logger.debug(f"Listing targets failed: {e}")
            else:
                if existing is not None:
                    logger.info("Using existing tab %s at %s", existing.id, existing.url)
                    return existing
            await asyncio.sleep(self._poll_interval)

        raise TargetUnavailable(
            f"Timed out waiting for a page target on {self._base_url}",
            details={"url": desired_url, "last_error": last_error},
        )

    async def _list_targets(self, client: httpx.AsyncClient) -> list[DebugTarget]:
        response = await client.get(f"{self._base_url}/json/list")
        response.raise_for_status()
        return [DebugTarget.from_json(entry) for entry in response.json()]

    async def _request_new(self, client: httpx.AsyncClient, desired_url: str) -> dict[str, Any]:
        endpoint = f"{self._base_url}/json/new?{quote(desired_url, safe='')}"
        # Modern Chrome only accepts PUT here; older releases only GET.
        response = await client.put(endpoint)
        if response.status_code == 405:
            logger.debug("/json/new rejected PUT, retrying with GET")
            response = await client.get(endpoint)
        response.raise_for_status()
        return response.json()

    async def _open_new_target(
        self, client: httpx.AsyncClient, desired_url: str
    ) -> DebugTarget | None:
        try:
            data = await self._request_new(client, desired_url)
            if not isinstance(data, dict):
                return None
            created = DebugTarget.from_json(data)
            if created.is_debuggable_page:
                return created
            if not created.id:
                return None

            # Freshly created tabs can take a moment to expose a debugger URL.
            deadline = time.monotonic() + self._created_wait
            while time.monotonic() < deadline:
                for target in await self._list_targets(client):
                    if target.id == created.id and target.is_debuggable_page:
                        return target
                await asyncio.sleep(self._created_poll_interval)
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Target creation unavailable, falling back to discovery: {e}")
        return None
