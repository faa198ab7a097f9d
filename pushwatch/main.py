"""Entry point for the pushwatch daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import socket
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pushwatch.config import Settings, StartupError, load_credentials
from pushwatch.manifest import ManifestError, load_manifest
from pushwatch.pushover.client import NotificationClient
from pushwatch.pushover.receipts import ReceiptRegistry
from pushwatch.scheduler.ack_poller import AckPoller
from pushwatch.scheduler.engine import Scheduler
from pushwatch.scheduler.watcher import Watcher

console = Console()
logger = logging.getLogger("pushwatch")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def _hostname(settings: Settings) -> str:
    return settings.hostname or socket.getfqdn()


async def _serve(settings: Settings, watchers: list[Watcher], fail_fast: bool) -> None:
    credentials = load_credentials(settings)
    registry = ReceiptRegistry()
    client = NotificationClient(
        credentials, registry, base_url=settings.api_url, timeout=settings.request_timeout,
    )
    scheduler = Scheduler(client, hostname=_hostname(settings), fail_fast=fail_fast)
    for watcher in watchers:
        scheduler.add(watcher)
    poller = AckPoller(client, registry, lookup_timeout=settings.request_timeout)
    scheduler.add(poller.watcher(delay=settings.ack_poll_interval))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.request_stop)
        except NotImplementedError:  # Windows
            pass

    try:
        await scheduler.run()
    finally:
        await client.aclose()


async def _run_once(settings: Settings, watchers: list[Watcher]) -> bool:
    scheduler = Scheduler(None, hostname=_hostname(settings))
    table = Table(title="pushwatch — single cycle")
    table.add_column("Watcher")
    table.add_column("Result")
    table.add_column("Time", justify="right")
    table.add_column("Message")

    all_passed = True
    for watcher in watchers:
        result = await scheduler.run_cycle(watcher, notify=False)
        all_passed = all_passed and result.passed
        style = "green" if result.passed else "red"
        table.add_row(
            watcher.title,
            f"[{style}]{result.status.value}[/{style}]",
            f"{result.duration * 1000:.0f}ms",
            result.message,
        )
    console.print(table)
    await scheduler.wait()
    return all_passed


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pushwatch", description="Watchdog with Pushover escalation")
    sub = parser.add_subparsers(dest="command")

    for name, help_text in (("run", "Run all watchers until terminated"), ("once", "Run every check once")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--manifest", default=None, help="Watcher manifest (YAML)")
        p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
        if name == "run":
            p.add_argument(
                "--fail-fast", action="store_true",
                help="Stop every watcher when one crashes unexpectedly",
            )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    settings = Settings()
    _setup_logging(args.log_level or settings.log_level)
    manifest = Path(args.manifest or settings.manifest)

    try:
        watchers = load_manifest(manifest)
        if args.command == "once":
            return 0 if asyncio.run(_run_once(settings, watchers)) else 1

        console.print(Panel(f"pushwatch — {len(watchers)} watchers from {manifest}", style="bold green"))
        asyncio.run(_serve(settings, watchers, args.fail_fast))
    except (StartupError, ManifestError) as e:
        console.print(f"[bold red]Startup failed:[/bold red] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
