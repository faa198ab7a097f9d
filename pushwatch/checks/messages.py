"""Notification message builders.

Pure functions: the hostname is passed in, never resolved here.
"""

from __future__ import annotations


def _seconds(value: float) -> str:
    return f"{value:g}"


def failure_message(hostname: str, detail: str) -> str:
    return f"[{hostname}]: {detail}"


def timeout_message(hostname: str, title: str, timeout: float) -> str:
    return failure_message(hostname, f"{title} timed out after {_seconds(timeout)} seconds")


def error_message(hostname: str, title: str, exc: BaseException) -> str:
    return failure_message(hostname, f"{title} raised {type(exc).__name__}: {exc}")


def memory_message(mem_pct: int, swap_pct: int, max_mem: int, max_swap: int) -> str:
    return f"Mem: {mem_pct}% Swap: {swap_pct}% (limits {max_mem}%/{max_swap}%)"


def unreachable_message(url: str, timeout: float) -> str:
    return f"{url} did not respond in {_seconds(timeout)} seconds"
