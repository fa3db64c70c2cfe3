"""Synthetic network traffic source.

``EventGenerator.produce()`` returns one simulated ``NetworkEvent`` per
call.  The analyzer drives it from its background loop; anything else
with a ``produce()`` method (a real capture feed, a replay file) can take
its place.
"""

from __future__ import annotations

import logging
import random as _random_mod
from typing import Any

from src.contracts.enums import Protocol, Severity
from src.contracts.event import NetworkEvent

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Catalogs
# ═══════════════════════════════════════════════════════════════════════════

EVENT_TYPES: tuple[str, ...] = (
    "NORMAL_TRAFFIC",
    "HTTP_REQUEST",
    "HTTPS_REQUEST",
    "DNS_QUERY",
    "FAILED_LOGIN",
    "PORT_SCAN",
    "MALWARE_COMM",
    "DATA_EXFIL",
    "ANOMALY_DETECTED",
    "INTRUSION_ATTEMPT",
    "C2_COMMUNICATION",
)

SEVERITY_BY_EVENT: dict[str, Severity] = {
    "MALWARE_COMM": Severity.CRITICAL,
    "C2_COMMUNICATION": Severity.CRITICAL,
    "DATA_EXFIL": Severity.CRITICAL,
    "INTRUSION_ATTEMPT": Severity.HIGH,
    "PORT_SCAN": Severity.HIGH,
    "FAILED_LOGIN": Severity.MEDIUM,
    "ANOMALY_DETECTED": Severity.MEDIUM,
}

PORTS_BY_PROTOCOL: dict[str, list[int]] = {
    "HTTP": [80, 8080, 3000, 8000],
    "HTTPS": [443, 8443],
    "DNS": [53],
    "TCP": [21, 22, 23, 25, 80, 443, 993, 995],
    "UDP": [53, 67, 68, 123, 161],
}

DEFAULT_PORTS: tuple[int, ...] = (80, 443, 22, 21)

IP_RANGES: tuple[str, ...] = (
    "192.168.1.",
    "10.0.0.",
    "172.16.0.",
    "203.0.113.",
    "198.51.100.",
)

EXFIL_BYTES = (50_000_000, 250_000_000)
NORMAL_BYTES_MAX = 10_000  # exclusive

_DESCRIPTIONS: dict[str, str] = {
    "MALWARE_COMM": "Suspected malware communication detected from {src}",
    "PORT_SCAN": "Port scanning activity detected from {src}",
    "FAILED_LOGIN": "Failed authentication attempt from {src}",
    "DATA_EXFIL": "Large data transfer detected: {src} -> {dst}",
    "INTRUSION_ATTEMPT": "Potential intrusion attempt from {src}",
    "C2_COMMUNICATION": "Command & Control communication detected: {src}",
    "ANOMALY_DETECTED": "Network anomaly detected involving {src}",
}
_DEFAULT_DESCRIPTION = "Network traffic: {src} -> {dst}"


def severity_for(event_type: str) -> Severity:
    """Severity is a pure function of the event type."""
    return SEVERITY_BY_EVENT.get(event_type, Severity.LOW)


def describe(event_type: str, source_ip: str, destination_ip: str) -> str:
    template = _DESCRIPTIONS.get(event_type, _DEFAULT_DESCRIPTION)
    return template.format(src=source_ip, dst=destination_ip)


def _pick(rng: _random_mod.Random, seq: Any) -> Any:
    return seq[rng.randint(0, len(seq) - 1)]


def _valid_ports(candidates: Any) -> list[int]:
    if not isinstance(candidates, (list, tuple)):
        return []
    return [p for p in candidates if isinstance(p, int) and not isinstance(p, bool)
            and 1 <= p <= 65535]


# ═══════════════════════════════════════════════════════════════════════════
#  Generator
# ═══════════════════════════════════════════════════════════════════════════

class EventGenerator:
    """Random traffic with a fixed event catalog and per-protocol ports."""

    def __init__(
        self,
        rng: _random_mod.Random | None = None,
        ports: dict[str, Any] | None = None,
        ip_ranges: list[str] | tuple[str, ...] | None = None,
    ) -> None:
        self.rng = rng or _random_mod.Random()
        if ports is None:
            ports = PORTS_BY_PROTOCOL
        elif not isinstance(ports, dict):
            log.warning("Port table must be a mapping, got %s — using defaults",
                        type(ports).__name__)
            ports = {}
        self.ports: dict[str, Any] = dict(ports)
        self.ip_ranges = tuple(ip_ranges or IP_RANGES)

    @classmethod
    def from_config(
        cls,
        cfg: dict[str, Any],
        rng: _random_mod.Random | None = None,
    ) -> EventGenerator:
        """Build from the ``generator`` section of monitor.yaml."""
        return cls(rng=rng, ports=cfg.get("ports"), ip_ranges=cfg.get("ip_ranges"))

    def random_ip(self) -> str:
        return f"{_pick(self.rng, self.ip_ranges)}{self.rng.randint(1, 254)}"

    def destination_port(self, protocol: str) -> int:
        """Pick a protocol-appropriate port, falling back to DEFAULT_PORTS."""
        candidates = _valid_ports(self.ports.get(protocol))
        if not candidates:
            log.debug("No usable port candidates for %s — using defaults", protocol)
            candidates = list(DEFAULT_PORTS)
        return _pick(self.rng, candidates)

    def produce(self) -> NetworkEvent:
        event_type = _pick(self.rng, EVENT_TYPES)
        protocol = _pick(self.rng, list(Protocol))
        src = self.random_ip()
        dst = self.random_ip()

        if "DATA_EXFIL" in event_type:
            nbytes = self.rng.randint(*EXFIL_BYTES)
        else:
            nbytes = self.rng.randrange(0, NORMAL_BYTES_MAX)

        event = NetworkEvent(
            source_ip=src,
            destination_ip=dst,
            source_port=self.rng.randint(1, 65535),
            destination_port=self.destination_port(protocol.value),
            protocol=protocol,
            event_type=event_type,
            severity=severity_for(event_type),
            description=describe(event_type, src, dst),
        )
        event.bytes_transferred = nbytes
        log.debug("Generated %s %s %s", event.event_id, event_type, src)
        return event


# ═══════════════════════════════════════════════════════════════════════════
#  Warm-up batch
# ═══════════════════════════════════════════════════════════════════════════

_SAMPLE_IPS = ("192.168.1.100", "10.0.0.50", "172.16.0.25", "203.0.113.10")
_SAMPLE_TYPES = ("NORMAL_TRAFFIC", "FAILED_LOGIN", "PORT_SCAN", "MALWARE_COMM")


def sample_events(count: int = 10) -> list[NetworkEvent]:
    """Deterministic batch used to pre-populate a fresh monitor."""
    events: list[NetworkEvent] = []
    for i in range(count):
        event_type = _SAMPLE_TYPES[i % len(_SAMPLE_TYPES)]
        events.append(
            NetworkEvent(
                source_ip=_SAMPLE_IPS[i % len(_SAMPLE_IPS)],
                destination_ip=_SAMPLE_IPS[(i + 1) % len(_SAMPLE_IPS)],
                source_port=1000 + i,
                destination_port=80,
                protocol=Protocol.TCP,
                event_type=event_type,
                severity=severity_for(event_type),
                description=f"Sample {event_type} event",
            )
        )
    return events
