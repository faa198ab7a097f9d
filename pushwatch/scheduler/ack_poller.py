"""Acknowledgment poller — retires receipts the provider reports as handled.

Runs as a synthetic watcher through the regular scheduler. Its check
always passes; the work is the side effect of pruning the registry.
Lookups run concurrently, each with its own deadline inside the poller's
timeout, and every receipt is retired the moment its status is known.
"""

from __future__ import annotations

import asyncio
import logging

from pushwatch.checks.base import CheckOutcome
from pushwatch.pushover.client import AckQueryError, NotificationClient
from pushwatch.pushover.receipts import Receipt, ReceiptRegistry
from .watcher import Watcher, WatcherConfig

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOOKUP_TIMEOUT = 10.0


class AckPoller:
    """Queries every pending receipt and drops acknowledged or expired ones."""

    def __init__(
        self,
        client: NotificationClient,
        registry: ReceiptRegistry | None = None,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
    ) -> None:
        self.client = client
        self.registry = registry if registry is not None else client.registry
        self.lookup_timeout = lookup_timeout

    @staticmethod
    def title_for(pending: int) -> str:
        return f"AckPoller({pending} pending)"

    def watcher(self, delay: float = DEFAULT_INTERVAL, timeout: float = DEFAULT_TIMEOUT) -> Watcher:
        config = WatcherConfig(title=self.title_for(len(self.registry)), delay=delay, timeout=timeout, notify=False)
        return Watcher(config=config, check=self)

    async def __call__(self, config: WatcherConfig) -> CheckOutcome:
        pending = self.registry.snapshot()
        # Half the cycle budget at most, so one hung lookup never times the cycle out
        per_lookup = min(self.lookup_timeout, config.timeout / 2)
        retired = await asyncio.gather(*(self._reconcile(r, per_lookup) for r in pending))

        removed = sum(retired)
        remaining = len(self.registry)
        config.title = self.title_for(remaining)
        return CheckOutcome(True, f"{removed} retired, {remaining} pending")

    async def _reconcile(self, receipt: Receipt, timeout: float) -> int:
        """Look up one receipt and retire it if handled; return how many went."""
        try:
            status = await asyncio.wait_for(self.client.receipt_status(receipt.id), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Acknowledgment lookup for %s timed out after %ss, keeping it pending", receipt.id, timeout)
            return 0
        except AckQueryError as e:
            logger.warning("Acknowledgment lookup failed, keeping receipt pending: %s", e)
            return 0
        except Exception:
            logger.exception("Unexpected error checking receipt %s", receipt.id)
            return 0

        if status.is_acknowledged:
            logger.info(
                "Receipt %s acknowledged by %s",
                receipt.id, status.acknowledged_by_device or status.acknowledged_by or "unknown",
            )
        elif status.is_expired:
            logger.info("Receipt %s expired without acknowledgment", receipt.id)
        else:
            return 0
        # Identity match: only the snapshot entry goes, never a newer receipt
        return self.registry.remove_acknowledged(lambda r: r is receipt)
