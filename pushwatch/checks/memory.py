"""Host memory check: used memory / swap percentages against thresholds."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .base import CheckOutcome
from .messages import memory_message

if TYPE_CHECKING:
    from pushwatch.scheduler.watcher import WatcherConfig

MEMINFO_PATH = Path("/proc/meminfo")


def read_meminfo() -> str:
    return MEMINFO_PATH.read_text(encoding="utf-8")


def parse_meminfo(text: str) -> dict[str, int]:
    """Parse ``/proc/meminfo`` lines into ``{field: kB}``."""
    values: dict[str, int] = {}
    for line in text.splitlines():
        if ":" not in line:
            continue
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts and parts[0].isdigit():
            values[key.strip()] = int(parts[0])
    return values


def _used_pct(free: int, total: int) -> int:
    if total <= 0:
        return 0
    return round((1 - free / total) * 100)


class MemoryCheck:
    """Fails when used memory exceeds ``max_mem`` % or used swap ``max_swap`` %."""

    def __init__(
        self,
        max_mem: int = 90,
        max_swap: int = 50,
        meminfo: Callable[[], str] = read_meminfo,
    ) -> None:
        self.max_mem = max_mem
        self.max_swap = max_swap
        self._meminfo = meminfo

    def default_title(self, config: WatcherConfig) -> str:
        return "Mem"

    def __call__(self, config: WatcherConfig) -> CheckOutcome:
        info = parse_meminfo(self._meminfo())
        mem_total = info.get("MemTotal", 0)
        # MemAvailable is missing on very old kernels
        mem_free = info.get("MemAvailable", info.get("MemFree", 0))
        swap_total = info.get("SwapTotal", 0)
        swap_free = info.get("SwapFree", 0)

        mem = _used_pct(mem_free, mem_total)
        swap = _used_pct(swap_free, swap_total)

        message = memory_message(mem, swap, self.max_mem, self.max_swap)
        over_swap = swap_total > 0 and swap > self.max_swap
        return CheckOutcome(passed=not (mem > self.max_mem or over_swap), message=message)
