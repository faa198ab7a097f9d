"""pushwatch — a small watchdog daemon that escalates failures via Pushover."""

__version__ = "0.1.0"
