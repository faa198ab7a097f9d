"""HTTP reachability check — HEAD/GET a URL within the watcher's timeout."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from .base import CheckOutcome
from .messages import unreachable_message

if TYPE_CHECKING:
    from pushwatch.scheduler.watcher import WatcherConfig

logger = logging.getLogger(__name__)


class HttpCheck:
    """Passes when the URL answers below 500, or with ``expected_status`` if set."""

    def __init__(
        self,
        url: str,
        method: str = "HEAD",
        expected_status: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url:
            raise ValueError("HttpCheck requires a url")
        self.url = url if "://" in url else f"http://{url}"
        self.method = method.upper()
        self.expected_status = expected_status
        self._client = client

    def default_title(self, config: WatcherConfig) -> str:
        return f"HTTPWatch({config.url_title or self.url})"

    def failure_message(self, config: WatcherConfig) -> str:
        return unreachable_message(self.url, config.timeout)

    async def __call__(self, config: WatcherConfig) -> CheckOutcome:
        try:
            if self._client is not None:
                resp = await self._client.request(self.method, self.url, timeout=config.timeout)
            else:
                async with httpx.AsyncClient(timeout=config.timeout, follow_redirects=True) as client:
                    resp = await client.request(self.method, self.url)
        except httpx.TimeoutException:
            return CheckOutcome(False, unreachable_message(self.url, config.timeout))
        except httpx.HTTPError as e:
            logger.debug("HTTP check %s failed: %s", self.url, e)
            return CheckOutcome(False, f"{self.url} unreachable: {type(e).__name__}: {e}")

        if self.expected_status is not None:
            ok = resp.status_code == self.expected_status
        else:
            ok = resp.status_code < 500
        if ok:
            return CheckOutcome(True, f"{resp.status_code} OK")
        return CheckOutcome(False, f"{self.url} returned {resp.status_code}")
