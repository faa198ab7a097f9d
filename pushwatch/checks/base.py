"""Check contract — what the scheduler expects from a pluggable probe."""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Union

if TYPE_CHECKING:
    from pushwatch.scheduler.watcher import WatcherConfig


@dataclass(frozen=True)
class CheckOutcome:
    """Result reported by a check: pass/fail plus an optional description."""

    passed: bool
    message: str = ""

    @classmethod
    def coerce(cls, raw: Any) -> CheckOutcome:
        """Accept either a CheckOutcome or a bare bool from a check."""
        if isinstance(raw, CheckOutcome):
            return raw
        if isinstance(raw, bool):
            return cls(passed=raw)
        raise TypeError(f"Check returned {type(raw).__name__}, expected CheckOutcome or bool")


CheckReturn = Union[CheckOutcome, bool]


class Check(Protocol):
    """A probe invoked once per cycle with its watcher's config.

    May be a plain callable or an ``async`` one. Optional hooks:

    - ``default_title(config)``: title used when the config sets none
    - ``failure_message(config)``: text used when a failure carries no message,
      and when the check overruns its timeout
    """

    def __call__(self, config: WatcherConfig) -> CheckReturn | Awaitable[CheckReturn]: ...
