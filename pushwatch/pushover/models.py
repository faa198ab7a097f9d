"""Pushover request and response models."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from pushwatch.scheduler.watcher import WatcherConfig

MAX_EXPIRE = 10_800  # provider caps emergency retries at 3 hours

# ── Requests ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NotificationRequest:
    """One outbound alert. Unset fields are left out of the form body."""

    message: str
    title: str | None = None
    priority: int | None = None
    url: str | None = None
    url_title: str | None = None
    expire: int | None = None
    retry: int | None = None
    sound: str | None = None
    device: str | None = None
    timestamp: int | None = None

    @classmethod
    def from_watcher(
        cls,
        config: WatcherConfig,
        title: str,
        message: str,
        timestamp: int | None = None,
    ) -> NotificationRequest:
        emergency = config.is_emergency
        return cls(
            message=message,
            title=title,
            priority=config.priority,
            url=config.url,
            url_title=config.url_title,
            expire=min(config.expire, MAX_EXPIRE) if emergency else None,
            retry=config.retry if emergency else None,
            sound=config.sound.value if config.sound else None,
            device=config.device,
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )

    def to_form(self) -> dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items() if v is not None and v != ""}


# ── Responses ────────────────────────────────────────────────────────────────


class MessageResponse(BaseModel):
    status: int
    request: str = ""
    receipt: str | None = None
    errors: list[str] = []


class ReceiptStatus(BaseModel):
    status: int
    acknowledged: int = 0
    acknowledged_at: int = 0
    acknowledged_by: str = ""
    acknowledged_by_device: str = ""
    last_delivered_at: int = 0
    expired: int = 0
    expires_at: int = 0
    request: str = ""

    @property
    def is_acknowledged(self) -> bool:
        return self.acknowledged == 1

    @property
    def is_expired(self) -> bool:
        return self.expired == 1
