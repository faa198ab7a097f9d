"""Pending receipts for emergency alerts awaiting acknowledgment."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Receipt:
    """One unacknowledged priority-2 alert.

    ``owner`` is the watcher config that raised it; it is only used as a
    lookup key.
    """

    id: str
    owner: Any = field(compare=False)
    created_at: float = field(default_factory=time.time, compare=False)


class ReceiptRegistry:
    """Thread-safe ordered store of pending receipts."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._receipts: list[Receipt] = []

    def insert(self, receipt: Receipt) -> None:
        with self._lock:
            self._receipts.append(receipt)

    def find(self, owner: Any) -> Receipt | None:
        with self._lock:
            return next((r for r in self._receipts if r.owner is owner), None)

    def exists_for(self, owner: Any) -> bool:
        return self.find(owner) is not None

    def remove_acknowledged(self, predicate: Callable[[Receipt], bool]) -> int:
        """Drop every receipt matching ``predicate``; return how many went."""
        with self._lock:
            kept = [r for r in self._receipts if not predicate(r)]
            removed = len(self._receipts) - len(kept)
            self._receipts = kept
        return removed

    def snapshot(self) -> list[Receipt]:
        with self._lock:
            return list(self._receipts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._receipts)
