"""Alert and AlertRule models."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from src.contracts.enums import Severity

if TYPE_CHECKING:
    from src.contracts.event import NetworkEvent

_ALERT_SEQ = itertools.count(1)


def _next_alert_id() -> str:
    return f"ALR-{next(_ALERT_SEQ):06d}"


@dataclass(frozen=True, slots=True)
class AlertRule:
    """Named detection rule.

    ``threshold`` and ``window_sec`` are carried for a future rate-based
    extension; evaluation is per event and ignores them.
    """

    name: str
    description: str
    threshold: int = 1
    window_sec: int = 1
    markers: tuple[str, ...] = ()   # event_type substrings, case-sensitive
    min_bytes: int | None = None    # fires when bytes_transferred > min_bytes

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Rule name must be non-empty")
        object.__setattr__(self, "markers", tuple(self.markers))

    @property
    def has_match(self) -> bool:
        return bool(self.markers) or self.min_bytes is not None


@dataclass(frozen=True, slots=True)
class Alert:
    """Record of one rule match against one event."""

    alert_type: str  # = triggering rule name
    description: str
    severity: Severity
    source_ip: str
    destination_ip: str
    event_description: str
    event_id: str = ""
    alert_id: str = field(default_factory=_next_alert_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @classmethod
    def from_event(cls, event: NetworkEvent, rule: AlertRule) -> Alert:
        return cls(
            alert_type=rule.name,
            description=rule.description,
            severity=event.severity,
            source_ip=event.source_ip,
            destination_ip=event.destination_ip,
            event_description=event.description,
            event_id=event.event_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "timestamp": self.timestamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "alert_type": self.alert_type,
            "description": self.description,
            "severity": self.severity.value,
            "source_ip": self.source_ip,
            "destination_ip": self.destination_ip,
            "event_description": self.event_description,
            "event_id": self.event_id,
        }

    def __str__(self) -> str:
        return (
            f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] {self.severity.value} | "
            f"{self.alert_type} | {self.source_ip} -> {self.destination_ip} | "
            f"{self.event_description}"
        )
