"""Checks: the probe contract, built-in probes and the type registry."""

from .base import Check, CheckOutcome
from .http import HttpCheck
from .memory import MemoryCheck
from .registry import CheckRegistry, UnknownCheckType, default_registry
