"""Tests for debuggable target discovery and creation."""

import httpx
import pytest

from draft_stager.cdp.targets import DebugTarget, TargetLocator, pick_target, url_matches
from draft_stager.errors import TargetUnavailable

BASE = "http://127.0.0.1:9222"
CHAT = "https://chatgpt.com"


def page_entry(target_id: str, url: str, ws: bool = True, kind: str = "page") -> dict:
    entry = {"id": target_id, "type": kind, "url": url, "title": target_id}
    if ws:
        entry["webSocketDebuggerUrl"] = f"ws://127.0.0.1:9222/devtools/page/{target_id}"
    return entry


def make_locator(handler, **kwargs) -> TargetLocator:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("timeout", 0.2)
    kwargs.setdefault("poll_interval", 0.01)
    kwargs.setdefault("created_wait", 0.2)
    kwargs.setdefault("created_poll_interval", 0.01)
    return TargetLocator(BASE, client=client, **kwargs)


class TestDebugTarget:
    def test_from_json(self):
        target = DebugTarget.from_json(page_entry("A", CHAT))
        assert target.id == "A"
        assert target.websocket_url == "ws://127.0.0.1:9222/devtools/page/A"
        assert target.is_debuggable_page

    def test_page_without_socket_is_not_debuggable(self):
        assert not DebugTarget.from_json(page_entry("A", CHAT, ws=False)).is_debuggable_page

    def test_worker_is_not_debuggable(self):
        assert not DebugTarget.from_json(page_entry("W", CHAT, kind="service_worker")).is_debuggable_page


class TestPickTarget:
    def test_url_matches_same_host(self):
        assert url_matches("https://chatgpt.com/c/123", CHAT)
        assert not url_matches("https://example.com", CHAT)
        assert not url_matches("", CHAT)

    def test_prefers_last_exact_match(self):
        targets = [
            DebugTarget.from_json(page_entry("A", CHAT)),
            DebugTarget.from_json(page_entry("B", "https://chatgpt.com/c/1")),
            DebugTarget.from_json(page_entry("C", CHAT)),
            DebugTarget.from_json(page_entry("D", "https://example.com")),
        ]
        assert pick_target(targets, CHAT).id == "C"

    def test_falls_back_to_same_host(self):
        targets = [
            DebugTarget.from_json(page_entry("A", "https://chatgpt.com/c/1")),
            DebugTarget.from_json(page_entry("B", "https://chatgpt.com/c/2")),
            DebugTarget.from_json(page_entry("C", "https://example.com")),
        ]
        assert pick_target(targets, CHAT).id == "B"

    def test_falls_back_to_latest_page(self):
        targets = [
            DebugTarget.from_json(page_entry("A", "https://example.com")),
            DebugTarget.from_json(page_entry("B", "https://example.org")),
            DebugTarget.from_json(page_entry("X", CHAT, ws=False)),
        ]
        assert pick_target(targets, CHAT).id == "B"

    def test_no_pages(self):
        assert pick_target([], CHAT) is None


class TestTargetLocatorCreation:
    async def test_created_target_is_returned_without_listing(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path))
            if request.url.path == "/json/new":
                return httpx.Response(200, json=page_entry("NEW", CHAT))
            return httpx.Response(200, json=[])

        target = await make_locator(handler).ensure_target(CHAT)

        assert target.id == "NEW"
        assert requests == [("PUT", "/json/new")]

    async def test_put_rejected_retries_with_get(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path))
            if request.url.path == "/json/new" and request.method == "PUT":
                return httpx.Response(405)
            if request.url.path == "/json/new":
                return httpx.Response(200, json=page_entry("NEW", CHAT))
            return httpx.Response(200, json=[])

        target = await make_locator(handler).ensure_target(CHAT)

        assert target.id == "NEW"
        assert requests == [("PUT", "/json/new"), ("GET", "/json/new")]

    async def test_desired_url_is_encoded_in_query(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=page_entry("NEW", CHAT))

        await make_locator(handler).ensure_target(CHAT)

        assert "chatgpt.com" in seen[0]
        assert seen[0].startswith(f"{BASE}/json/new?")

    async def test_created_id_is_polled_until_debuggable(self):
        listings = iter(
            [
                [page_entry("NEW", CHAT, ws=False)],
                [page_entry("OLD", CHAT), page_entry("NEW", CHAT)],
            ]
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/json/new":
                return httpx.Response(200, json={"id": "NEW", "type": "page", "url": CHAT})
            return httpx.Response(200, json=next(listings))

        target = await make_locator(handler).ensure_target(CHAT)

        assert target.id == "NEW"
        assert target.is_debuggable_page


class TestTargetLocatorDiscovery:
    async def test_creation_failure_falls_back_to_listing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/json/new":
                return httpx.Response(500)
            return httpx.Response(
                200,
                json=[page_entry("A", "https://chatgpt.com/c/1"), page_entry("B", CHAT)],
            )

        target = await make_locator(handler).ensure_target(CHAT)
        assert target.id == "B"

    async def test_listing_is_polled_until_a_page_appears(self):
        listings = iter([[], [page_entry("W", CHAT, kind="worker")], [page_entry("A", CHAT)]])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/json/new":
                return httpx.Response(404)
            return httpx.Response(200, json=next(listings))

        target = await make_locator(handler).ensure_target(CHAT)
        assert target.id == "A"

    async def test_listing_errors_are_retried(self):
        calls = {"list": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/json/new":
                raise httpx.ConnectError("refused", request=request)
            calls["list"] += 1
            if calls["list"] == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=[page_entry("A", CHAT)])

        target = await make_locator(handler).ensure_target(CHAT)
        assert target.id == "A"
        assert calls["list"] == 2

    async def test_times_out_with_target_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/json/new":
                return httpx.Response(405)
            return httpx.Response(200, json=[])

        with pytest.raises(TargetUnavailable) as exc_info:
            await make_locator(handler, timeout=0.05).ensure_target(CHAT)

        assert BASE in str(exc_info.value)
        assert exc_info.value.details["url"] == CHAT
        assert exc_info.value.retryable is False
