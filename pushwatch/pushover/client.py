"""httpx-based client for the Pushover API.

Sends alerts, records receipts for emergency alerts and looks up
acknowledgment status. Failures raise DeliveryError / AckQueryError.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from pushwatch.config import Credentials
from pushwatch.pushover.models import MessageResponse, NotificationRequest, ReceiptStatus
from pushwatch.pushover.receipts import Receipt, ReceiptRegistry

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pushover.net"
MESSAGES_PATH = "/1/messages.json"
RECEIPT_PATH = "/1/receipts/{receipt}.json"


class DeliveryError(Exception):
    """Raised when the provider did not accept a notification."""

    def __init__(self, detail: str, status_code: int | None = None, errors: list[str] | None = None) -> None:
        self.status_code = status_code
        self.errors = errors or []
        self.detail = detail
        super().__init__(f"Delivery failed ({status_code or 'no response'}): {detail}")


class AckQueryError(Exception):
    """Raised when a receipt's acknowledgment status could not be read."""


class SubmitOutcome(str, Enum):
    SENT = "sent"
    SUPPRESSED = "suppressed"


def _error_detail(resp: httpx.Response) -> tuple[str, list[str]]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200], []
    errors = body.get("errors") if isinstance(body, dict) else None
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors), [str(e) for e in errors]
    return resp.text[:200], []


class NotificationClient:
    """Async Pushover client owning the dedup gate for emergency alerts."""

    def __init__(
        self,
        credentials: Credentials,
        registry: ReceiptRegistry,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._credentials = credentials
        self.registry = registry
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owner_locks: weakref.WeakKeyDictionary[Any, asyncio.Lock] = weakref.WeakKeyDictionary()

    def _lock_for(self, owner: Any) -> asyncio.Lock:
        lock = self._owner_locks.get(owner)
        if lock is None:
            lock = self._owner_locks[owner] = asyncio.Lock()
        return lock

    async def submit(self, owner: Any, request: NotificationRequest) -> SubmitOutcome:
        """Send ``request`` unless ``owner`` already has a pending receipt."""
        async with self._lock_for(owner):
            pending = self.registry.find(owner)
            if pending is not None:
                logger.info("Not sending '%s': receipt %s still unacknowledged", request.title, pending.id)
                return SubmitOutcome.SUPPRESSED

            result = await self._post_message(request)

            if request.priority == 2:
                if result.receipt:
                    self.registry.insert(Receipt(id=result.receipt, owner=owner))
                    logger.info("Pending receipt %s for '%s'", result.receipt, request.title)
                else:
                    logger.warning("Emergency alert '%s' sent but no receipt returned", request.title)
            return SubmitOutcome.SENT

    async def receipt_status(self, receipt_id: str) -> ReceiptStatus:
        """GET /1/receipts/{receipt}.json"""
        url = self._base_url + RECEIPT_PATH.format(receipt=receipt_id)
        try:
            resp = await self._client.get(url, params={"token": self._credentials.app_token})
        except httpx.HTTPError as e:
            raise AckQueryError(f"Receipt {receipt_id}: {type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            detail, _ = _error_detail(resp)
            raise AckQueryError(f"Receipt {receipt_id}: HTTP {resp.status_code}: {detail}")
        try:
            status = ReceiptStatus.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise AckQueryError(f"Receipt {receipt_id}: invalid response: {e}") from e
        if status.status != 1:
            raise AckQueryError(f"Receipt {receipt_id}: provider status {status.status}")
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- Low-level ------------------------------------------------------------

    async def _post_message(self, request: NotificationRequest) -> MessageResponse:
        """POST /1/messages.json"""
        fields = request.to_form()
        logger.info("Submitting: %s", fields)

        data = {"token": self._credentials.app_token, "user": self._credentials.user_token, **fields}
        try:
            resp = await self._client.post(self._base_url + MESSAGES_PATH, data=data)
        except httpx.HTTPError as e:
            raise DeliveryError(f"{type(e).__name__}: {e}") from e

        if resp.status_code >= 400:
            detail, errors = _error_detail(resp)
            raise DeliveryError(detail, status_code=resp.status_code, errors=errors)
        try:
            result = MessageResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise DeliveryError(f"Invalid response: {e}", status_code=resp.status_code) from e
        if result.status != 1:
            raise DeliveryError(
                "; ".join(result.errors) or "provider rejected message",
                status_code=resp.status_code,
                errors=result.errors,
            )
        return result
