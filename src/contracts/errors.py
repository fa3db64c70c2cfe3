"""Exception types raised by the monitor core."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for all monitor errors."""


class UnknownRuleError(MonitorError):
    """Rule mutation referenced a rule name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown alert rule: {name!r}")
        self.name = name


class EventSealedError(MonitorError, AttributeError):
    """Attempt to modify an event after it reached the event store."""
