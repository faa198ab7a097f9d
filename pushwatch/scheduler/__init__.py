"""Scheduler subsystem: watchers, the per-watcher loops and the ack poller."""

from .ack_poller import AckPoller
from .engine import CycleResult, CycleStatus, Scheduler
from .watcher import ConfigError, Sound, Watcher, WatcherConfig
