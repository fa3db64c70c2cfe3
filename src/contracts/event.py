"""NetworkEvent data-class — one observed network occurrence."""

from __future__ import annotations

import itertools
import json
import re
from dataclasses import FrozenInstanceError, dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from src.contracts.enums import Protocol, Severity
from src.contracts.errors import EventSealedError

_EVENT_SEQ = itertools.count(1)

_IPV4_RE = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")

# event_type markers that flag an event as suspicious regardless of severity
SUSPICIOUS_MARKERS: tuple[str, ...] = ("MALWARE", "INTRUSION", "ANOMALY")

# the only fields assignable between construction and seal()
_MUTABLE_FIELDS = frozenset({"bytes_transferred", "additional_data"})


def _next_event_id() -> str:
    return f"EVT-{next(_EVENT_SEQ):06d}"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(slots=True)
class NetworkEvent:
    """One event routed through the monitor pipeline.

    After construction only ``bytes_transferred`` (never negative) and
    ``additional_data`` may change.  Storing the event *seals* it: from
    then on every attribute assignment raises :class:`EventSealedError`
    and ``additional_data`` becomes a read-only mapping.
    """

    # ── mandatory ──
    source_ip: str
    destination_ip: str
    source_port: int
    destination_port: int
    protocol: Protocol
    event_type: str         # open tag, e.g. FAILED_LOGIN
    severity: Severity
    description: str

    # ── optional ──
    bytes_transferred: int = 0
    additional_data: Mapping[str, str] = field(default_factory=dict)
    event_id: str = field(default_factory=_next_event_id)
    timestamp: datetime = field(default_factory=_utcnow)
    _sealed: bool = field(default=False, init=False, repr=False, compare=False)
    _validated: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("source_ip", "destination_ip"):
            if not _IPV4_RE.match(getattr(self, name)):
                raise ValueError(f"{name} is not a dotted-quad address: {getattr(self, name)!r}")
        for name in ("source_port", "destination_port"):
            port = getattr(self, name)
            if not 1 <= port <= 65535:
                raise ValueError(f"{name} out of range 1-65535: {port}")
        if self.bytes_transferred < 0:
            raise ValueError(f"bytes_transferred must be >= 0, got {self.bytes_transferred}")
        self.protocol = Protocol(self.protocol)
        self.severity = Severity(self.severity)
        self.additional_data = dict(self.additional_data)
        object.__setattr__(self, "_validated", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise EventSealedError(f"Event {self.event_id} is sealed; cannot set {name}")
        if getattr(self, "_validated", False):
            if name not in _MUTABLE_FIELDS:
                raise FrozenInstanceError(f"cannot assign to field {name!r}")
            if name == "bytes_transferred" and value < 0:
                raise ValueError(f"bytes_transferred must be >= 0, got {value}")
        object.__setattr__(self, name, value)

    # ── enrichment ────────────────────────────────────────────────────────

    def add_data(self, key: str, value: str) -> None:
        """Attach one side-channel entry (threat intel tags and the like)."""
        if self._sealed:
            raise EventSealedError(f"Event {self.event_id} is sealed; cannot add {key!r}")
        self.additional_data[key] = value

    def seal(self) -> None:
        """Freeze the event.  Called once, when the event reaches the store."""
        if self._sealed:
            return
        self.additional_data = MappingProxyType(dict(self.additional_data))
        object.__setattr__(self, "_sealed", True)

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def is_suspicious(self) -> bool:
        if self.severity in (Severity.HIGH, Severity.CRITICAL):
            return True
        return any(m in self.event_type for m in SUSPICIOUS_MARKERS)

    # ── serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source_ip": self.source_ip,
            "destination_ip": self.destination_ip,
            "source_port": self.source_port,
            "destination_port": self.destination_port,
            "protocol": self.protocol.value,
            "event_type": self.event_type,
            "severity": self.severity.value,
            "description": self.description,
            "bytes_transferred": self.bytes_transferred,
            "additional_data": dict(self.additional_data),
        }

    def to_json(self) -> str:
        """Return compact JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    def __str__(self) -> str:
        return (
            f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] {self.severity.value} | "
            f"{self.source_ip}:{self.source_port} -> "
            f"{self.destination_ip}:{self.destination_port} | "
            f"{self.protocol.value} | {self.event_type} | {self.description}"
        )
