"""Watcher models — per-check configuration plus last-known state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pushwatch.checks.base import Check

DEFAULT_TIMEOUT = 3.0
DEFAULT_DELAY = 60.0
DEFAULT_PRIORITY = 0
DEFAULT_RETRY = 30 * 60
DEFAULT_EXPIRE = 24 * 3600

EMERGENCY_PRIORITY = 2
MIN_RETRY = 30  # provider rejects faster re-delivery


class ConfigError(ValueError):
    """Raised when a watcher is configured with invalid values."""


class Sound(str, Enum):
    PUSHOVER = "pushover"
    BIKE = "bike"
    BUGLE = "bugle"
    CASHREGISTER = "cashregister"
    CLASSICAL = "classical"
    COSMIC = "cosmic"
    FALLING = "falling"
    GAMELAN = "gamelan"
    INCOMING = "incoming"
    INTERMISSION = "intermission"
    MAGIC = "magic"
    MECHANICAL = "mechanical"
    PIANOBAR = "pianobar"
    SIREN = "siren"
    SPACEALARM = "spacealarm"
    TUGBOAT = "tugboat"
    ALIEN = "alien"
    CLIMB = "climb"
    PERSISTENT = "persistent"
    ECHO = "echo"
    UPDOWN = "updown"
    VIBRATE = "vibrate"
    NONE = "none"


@dataclass(eq=False)
class WatcherConfig:
    """Static settings for one watcher plus the state its task mutates.

    Compared and hashed by identity: receipts use the config as their
    owner key.
    """

    title: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    delay: float = DEFAULT_DELAY
    priority: int = DEFAULT_PRIORITY
    retry: int = DEFAULT_RETRY
    expire: int = DEFAULT_EXPIRE
    sound: Sound | None = None
    url: str | None = None
    url_title: str | None = None
    device: str | None = None
    notify: bool = True
    renotify: bool | None = None  # None = only priority-2 watchers re-alert

    # Owned by the watcher's scheduler task
    last_state: bool = field(default=True, init=False)
    alerted: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.delay < 0:
            raise ConfigError(f"delay must not be negative, got {self.delay}")
        if not -2 <= self.priority <= 2:
            raise ConfigError(f"priority must be between -2 and 2, got {self.priority}")
        if self.retry < MIN_RETRY:
            raise ConfigError(f"retry must be at least {MIN_RETRY} seconds, got {self.retry}")
        if self.expire <= 0:
            raise ConfigError(f"expire must be positive, got {self.expire}")
        if self.sound is not None and not isinstance(self.sound, Sound):
            try:
                self.sound = Sound(str(self.sound))
            except ValueError:
                raise ConfigError(f"Unknown sound: {self.sound}") from None

    @property
    def is_emergency(self) -> bool:
        return self.priority == EMERGENCY_PRIORITY

    @property
    def renotify_enabled(self) -> bool:
        if self.renotify is None:
            return self.is_emergency
        return self.renotify


@dataclass(eq=False)
class Watcher:
    """A check bound to its configuration."""

    config: WatcherConfig
    check: Check

    @property
    def title(self) -> str:
        if self.config.title:
            return self.config.title
        default_title = getattr(self.check, "default_title", None)
        if callable(default_title):
            return default_title(self.config)
        return getattr(self.check, "__name__", type(self.check).__name__)

    def failure_detail(self, message: str) -> str:
        """Message for a reported failure, falling back to the check's default."""
        if message:
            return message
        return self.hook_message() or f"{self.title} failed"

    def hook_message(self) -> str | None:
        """The check's own ``failure_message``, if it provides one."""
        hook = getattr(self.check, "failure_message", None)
        if callable(hook):
            return hook(self.config)
        return None
