"""Shared fixtures for SOC Network Monitor tests."""

from __future__ import annotations

import random
import threading
import time
from typing import Callable

import pytest

from src.contracts.alert import Alert
from src.contracts.enums import Protocol, Severity
from src.contracts.event import NetworkEvent
from src.emulator.generator import EventGenerator, severity_for
from src.monitor.analyzer import NetworkAnalyzer

# ── Helper: create NetworkEvent with sensible defaults ──────────────────


def make_event(
    *,
    source_ip: str = "192.168.1.10",
    destination_ip: str = "10.0.0.20",
    source_port: int = 40000,
    destination_port: int = 443,
    protocol: Protocol | str = Protocol.TCP,
    event_type: str = "NORMAL_TRAFFIC",
    severity: Severity | str | None = None,
    description: str = "test event",
    bytes_transferred: int = 0,
) -> NetworkEvent:
    """Build an event; severity defaults to the generator's mapping."""
    return NetworkEvent(
        source_ip=source_ip,
        destination_ip=destination_ip,
        source_port=source_port,
        destination_port=destination_port,
        protocol=protocol,
        event_type=event_type,
        severity=severity if severity is not None else severity_for(event_type),
        description=description,
        bytes_transferred=bytes_transferred,
    )


def make_alert(
    *,
    alert_type: str = "BRUTE_FORCE",
    description: str = "Multiple failed login attempts",
    severity: Severity = Severity.MEDIUM,
    source_ip: str = "192.168.1.10",
    destination_ip: str = "10.0.0.20",
    event_description: str = "Failed authentication attempt from 192.168.1.10",
    event_id: str = "EVT-000001",
) -> Alert:
    return Alert(
        alert_type=alert_type,
        description=description,
        severity=severity,
        source_ip=source_ip,
        destination_ip=destination_ip,
        event_description=event_description,
        event_id=event_id,
    )


def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Poll *predicate* until it holds or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class RecordingGenerator:
    """Event source that records which thread called ``produce``."""

    def __init__(self, seed: int = 1) -> None:
        self._inner = EventGenerator(rng=random.Random(seed))
        self._lock = threading.Lock()
        self.calls = 0
        self.threads: set[int] = set()

    def produce(self) -> NetworkEvent:
        with self._lock:
            self.calls += 1
            self.threads.add(threading.get_ident())
        return self._inner.produce()


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def analyzer(rng) -> NetworkAnalyzer:
    """Idle analyzer with default rules and threat intel."""
    a = NetworkAnalyzer(rng=rng)
    yield a
    a.stop()


@pytest.fixture
def fast_analyzer() -> NetworkAnalyzer:
    """Analyzer whose loop runs every few milliseconds."""
    gen = RecordingGenerator()
    a = NetworkAnalyzer(generator=gen, rng=random.Random(5), interval_sec=(0.005, 0.01))
    yield a
    a.stop()
