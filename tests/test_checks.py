"""Tests for the built-in checks, message builders and the check registry."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from pushwatch.checks.base import CheckOutcome
from pushwatch.checks.http import HttpCheck
from pushwatch.checks.memory import MemoryCheck, parse_meminfo
from pushwatch.checks.messages import error_message, failure_message, timeout_message
from pushwatch.checks.registry import CheckRegistry, UnknownCheckType, default_registry
from pushwatch.scheduler.watcher import Watcher, WatcherConfig

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         1000000 kB
MemAvailable:    4000000 kB
SwapTotal:       2000000 kB
SwapFree:        1500000 kB
HugePages_Total:       0
"""


def _client(handler) -> httpx.AsyncClient:  # noqa: ANN001
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── CheckOutcome ─────────────────────────────────────────────────────────────


class TestCheckOutcome:
    def test_coerce_bool(self) -> None:
        assert CheckOutcome.coerce(True) == CheckOutcome(True)
        assert CheckOutcome.coerce(False).passed is False

    def test_coerce_passthrough(self) -> None:
        outcome = CheckOutcome(False, "nope")
        assert CheckOutcome.coerce(outcome) is outcome

    def test_coerce_rejects_other(self) -> None:
        with pytest.raises(TypeError):
            CheckOutcome.coerce("yes")


# ── Messages ─────────────────────────────────────────────────────────────────


class TestMessages:
    def test_failure(self) -> None:
        assert failure_message("web1", "down") == "[web1]: down"

    def test_timeout(self) -> None:
        assert timeout_message("web1", "HTTPWatch(x)", 3.0) == "[web1]: HTTPWatch(x) timed out after 3 seconds"

    def test_error(self) -> None:
        msg = error_message("web1", "Mem", OSError("no meminfo"))
        assert msg == "[web1]: Mem raised OSError: no meminfo"


# ── HTTP check ───────────────────────────────────────────────────────────────


class TestHttpCheck:
    def test_success(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.host))
            return httpx.Response(200)

        check = HttpCheck("https://example.com", client=_client(handler))
        outcome = asyncio.run(check(WatcherConfig()))
        assert outcome.passed
        assert seen == [("HEAD", "example.com")]

    def test_client_error_still_reachable(self) -> None:
        check = HttpCheck("https://example.com", client=_client(lambda r: httpx.Response(404)))
        assert asyncio.run(check(WatcherConfig())).passed

    def test_server_error_fails(self) -> None:
        check = HttpCheck("https://example.com", client=_client(lambda r: httpx.Response(503)))
        outcome = asyncio.run(check(WatcherConfig()))
        assert not outcome.passed
        assert outcome.message == "https://example.com returned 503"

    def test_expected_status(self) -> None:
        check = HttpCheck(
            "https://example.com", method="get", expected_status=204,
            client=_client(lambda r: httpx.Response(200)),
        )
        assert check.method == "GET"
        assert not asyncio.run(check(WatcherConfig())).passed

    def test_timeout_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        check = HttpCheck("https://example.com", client=_client(handler))
        outcome = asyncio.run(check(WatcherConfig(timeout=10)))
        assert outcome.message == "https://example.com did not respond in 10 seconds"

    def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        outcome = asyncio.run(HttpCheck("https://example.com", client=_client(handler))(WatcherConfig()))
        assert not outcome.passed
        assert "ConnectError" in outcome.message

    def test_scheme_added(self) -> None:
        assert HttpCheck("example.com").url == "http://example.com"

    def test_title(self) -> None:
        check = HttpCheck("https://example.com")
        assert Watcher(WatcherConfig(), check).title == "HTTPWatch(https://example.com)"
        assert Watcher(WatcherConfig(url_title="Example"), check).title == "HTTPWatch(Example)"
        assert Watcher(WatcherConfig(title="Site"), check).title == "Site"

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError):
            HttpCheck("")


# ── Memory check ─────────────────────────────────────────────────────────────


class TestMemoryCheck:
    def test_parse_meminfo(self) -> None:
        info = parse_meminfo(MEMINFO)
        assert info["MemTotal"] == 16000000
        assert info["HugePages_Total"] == 0

    def test_under_threshold(self) -> None:
        check = MemoryCheck(max_mem=90, max_swap=50, meminfo=lambda: MEMINFO)
        outcome = check(WatcherConfig())
        assert outcome.passed
        assert outcome.message == "Mem: 75% Swap: 25% (limits 90%/50%)"

    def test_memory_over_threshold(self) -> None:
        check = MemoryCheck(max_mem=70, max_swap=50, meminfo=lambda: MEMINFO)
        outcome = check(WatcherConfig())
        assert not outcome.passed
        assert outcome.message == "Mem: 75% Swap: 25% (limits 70%/50%)"

    def test_swap_over_threshold(self) -> None:
        check = MemoryCheck(max_mem=90, max_swap=20, meminfo=lambda: MEMINFO)
        assert not check(WatcherConfig()).passed

    def test_no_swap_ignored(self) -> None:
        text = "MemTotal: 1000 kB\nMemAvailable: 900 kB\nSwapTotal: 0 kB\nSwapFree: 0 kB\n"
        check = MemoryCheck(max_mem=50, max_swap=0, meminfo=lambda: text)
        assert check(WatcherConfig()).passed


# ── Registry ─────────────────────────────────────────────────────────────────


class TestCheckRegistry:
    def test_defaults(self) -> None:
        assert default_registry().names == ["http", "memory"]

    def test_fresh_registry_each_time(self) -> None:
        a = default_registry()
        a.register("custom", lambda: (lambda cfg: True))
        assert "custom" not in default_registry().names

    def test_create(self) -> None:
        check = default_registry().create("memory", max_mem=80)
        assert isinstance(check, MemoryCheck)
        assert check.max_mem == 80

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownCheckType):
            default_registry().create("ftp")

    def test_unknown_params(self) -> None:
        with pytest.raises(TypeError, match="bogus"):
            default_registry().create("memory", bogus=1)

    def test_duplicate_rejected(self) -> None:
        registry = CheckRegistry()
        registry.register("x", HttpCheck, ("url",))
        with pytest.raises(ValueError):
            registry.register("x", HttpCheck, ("url",))
