"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import parse_qsl

import httpx
import pytest

from pushwatch.config import Credentials
from pushwatch.pushover.client import NotificationClient
from pushwatch.pushover.receipts import ReceiptRegistry

APP_TOKEN = "app-secret-token"
USER_TOKEN = "user-secret-token"


class FakePushover:
    """In-memory stand-in for the Pushover HTTP API."""

    def __init__(self) -> None:
        self.messages: list[dict[str, str]] = []
        self.receipt_queries: list[str] = []
        self.acknowledged: set[str] = set()
        self.expired: set[str] = set()
        self.broken_receipts: set[str] = set()
        self.fail_messages = False
        self.on_receipt_query: Callable[[str], None] | None = None
        self._receipts = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/1/messages.json":
            form = dict(parse_qsl(request.content.decode()))
            self.messages.append(form)
            if self.fail_messages:
                return httpx.Response(500, json={"status": 0, "errors": ["server on fire"]})
            body: dict[str, object] = {"status": 1, "request": f"req-{len(self.messages)}"}
            if form.get("priority") == "2":
                self._receipts += 1
                body["receipt"] = f"r{self._receipts}"
            return httpx.Response(200, json=body)

        if path.startswith("/1/receipts/"):
            receipt = path.rsplit("/", 1)[1].removesuffix(".json")
            self.receipt_queries.append(receipt)
            if self.on_receipt_query is not None:
                self.on_receipt_query(receipt)
            if receipt in self.broken_receipts:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json={
                "status": 1,
                "acknowledged": int(receipt in self.acknowledged),
                "acknowledged_by_device": "phone" if receipt in self.acknowledged else "",
                "expired": int(receipt in self.expired),
                "request": "req",
            })

        return httpx.Response(404, json={"status": 0, "errors": ["not found"]})

    @property
    def message_count(self) -> int:
        return len(self.messages)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_token=APP_TOKEN, user_token=USER_TOKEN)


@pytest.fixture
def fake_pushover() -> FakePushover:
    return FakePushover()


@pytest.fixture
def registry() -> ReceiptRegistry:
    return ReceiptRegistry()


@pytest.fixture
def notifier(credentials: Credentials, registry: ReceiptRegistry, fake_pushover) -> NotificationClient:
    """A NotificationClient wired to the fake provider."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_pushover.handler))
    return NotificationClient(credentials, registry, client=http)
