"""Check-type registry — maps manifest type names to check constructors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .base import Check
from .http import HttpCheck
from .memory import MemoryCheck


class UnknownCheckType(KeyError):
    """Raised when a manifest names a check type that was never registered."""


@dataclass(frozen=True)
class CheckType:
    name: str
    factory: Callable[..., Check]
    params: frozenset[str]


class CheckRegistry:
    """Explicit name → constructor registry. Nothing registers itself."""

    def __init__(self) -> None:
        self._types: dict[str, CheckType] = {}

    def register(self, name: str, factory: Callable[..., Check], params: tuple[str, ...] = ()) -> None:
        if name in self._types:
            raise ValueError(f"Check type '{name}' is already registered")
        self._types[name] = CheckType(name=name, factory=factory, params=frozenset(params))

    def get(self, name: str) -> CheckType:
        try:
            return self._types[name]
        except KeyError:
            raise UnknownCheckType(name) from None

    def create(self, name: str, **params: Any) -> Check:
        check_type = self.get(name)
        unknown = set(params) - check_type.params
        if unknown:
            raise TypeError(f"Unknown parameters for '{name}': {', '.join(sorted(unknown))}")
        return check_type.factory(**params)

    @property
    def names(self) -> list[str]:
        return sorted(self._types)


def default_registry() -> CheckRegistry:
    """A fresh registry with the built-in check types."""
    registry = CheckRegistry()
    registry.register("http", HttpCheck, ("url", "method", "expected_status"))
    registry.register("memory", MemoryCheck, ("max_mem", "max_swap"))
    return registry
