"""Watcher manifest — loads watchers.yaml into bound Watcher objects.

Example:

    watchers:
      - type: http
        url: https://example.com
        url_title: Example
        timeout: 10
        priority: 2
        sound: spacealarm
      - type: memory
        title: Mem
        max_mem: 90
        max_swap: 50
        delay: 60
        priority: 2
"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from pushwatch.checks.registry import CheckRegistry, UnknownCheckType, default_registry
from pushwatch.scheduler.watcher import ConfigError, Watcher, WatcherConfig

logger = logging.getLogger(__name__)

CONFIG_FIELDS = frozenset(f.name for f in fields(WatcherConfig) if f.init)


class ManifestError(Exception):
    """Raised when the manifest cannot be read or contains an invalid entry."""


def build_watcher(entry: dict[str, Any], registry: CheckRegistry) -> Watcher:
    """Split one manifest entry into check parameters and config fields."""
    if not isinstance(entry, dict):
        raise ManifestError(f"Watcher entry must be a mapping, got {type(entry).__name__}")
    entry = dict(entry)
    type_name = entry.pop("type", None)
    if not type_name:
        raise ManifestError(f"Watcher entry is missing 'type': {entry}")
    try:
        check_type = registry.get(type_name)
    except UnknownCheckType:
        raise ManifestError(
            f"Unknown check type '{type_name}' (known: {', '.join(registry.names)})"
        ) from None

    unknown = set(entry) - check_type.params - CONFIG_FIELDS
    if unknown:
        raise ManifestError(f"Unknown keys for '{type_name}' watcher: {', '.join(sorted(unknown))}")

    check_params = {k: v for k, v in entry.items() if k in check_type.params}
    config_params = {k: v for k, v in entry.items() if k in CONFIG_FIELDS}
    try:
        check = registry.create(type_name, **check_params)
        config = WatcherConfig(**config_params)
    except (ConfigError, TypeError, ValueError) as e:
        raise ManifestError(f"Invalid '{type_name}' watcher: {e}") from e
    return Watcher(config=config, check=check)


def load_manifest(path: Path, registry: CheckRegistry | None = None) -> list[Watcher]:
    """Parse a manifest file into watchers."""
    registry = registry or default_registry()
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Failed to parse {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ManifestError(f"{path} must contain a mapping with a 'watchers' list")

    watchers = [build_watcher(entry, registry) for entry in raw.get("watchers") or []]
    logger.info("Loaded %d watchers from %s", len(watchers), path)
    return watchers
