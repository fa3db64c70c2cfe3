"""Analyzer — orchestrator: generate -> ingest -> enrich -> alert -> stats -> notify.

State machine
─────────────
  Idle ──start()──▶ Monitoring ──stop()──▶ Idle

While monitoring, one daemon thread produces an event, ingests it and
waits a random 1.0–3.0 s.  The wait is on a ``threading.Event`` so
``stop()`` interrupts it immediately.

Locking
───────
  _ingest_lock  re-entrant; one writer at a time, covers enrichment,
                rule evaluation and notifications in ingestion order
  _state_lock   held only for the commit of store, counters, alerts
                and statistics; every getter takes it, so snapshots
                never see a half-applied event and rule predicates may
                call the getters

``stop()`` takes neither lock, so it cannot deadlock against an
in-flight ingest.
"""

from __future__ import annotations

import logging
import random as _random_mod
import threading
from collections import Counter
from typing import Any, Callable, Protocol as _Protocol

from src.contracts.alert import Alert, AlertRule
from src.contracts.enums import SecurityStatus, Severity
from src.contracts.event import NetworkEvent
from src.emulator.generator import EventGenerator, sample_events
from src.monitor.pubsub import SubscriberRegistry, Subscription
from src.monitor.rules import RuleEngine
from src.monitor.statistics import NetworkStatistics, StatisticsAggregator
from src.monitor.threat_intel import ThreatIntelligence
from src.shared.seed import make_rng

log = logging.getLogger(__name__)

DISPLAY_LIMIT = 10
DEFAULT_INTERVAL_SEC: tuple[float, float] = (1.0, 3.0)
STOP_JOIN_TIMEOUT_SEC = 5.0

# CRITICAL-event ratio thresholds, checked top-down
_STATUS_THRESHOLDS: tuple[tuple[float, SecurityStatus], ...] = (
    (0.10, SecurityStatus.CRITICAL),
    (0.05, SecurityStatus.HIGH),
    (0.02, SecurityStatus.MEDIUM),
)


class EventSource(_Protocol):
    def produce(self) -> NetworkEvent: ...


def security_status(critical: int, total: int) -> SecurityStatus:
    """Map the share of CRITICAL events onto an overall status."""
    if total == 0:
        return SecurityStatus.UNKNOWN
    ratio = critical / total
    for threshold, status in _STATUS_THRESHOLDS:
        if ratio > threshold:
            return status
    return SecurityStatus.LOW


class NetworkAnalyzer:
    """Owns the event store and drives the monitoring loop."""

    def __init__(
        self,
        generator: EventSource | None = None,
        threat_intel: ThreatIntelligence | None = None,
        rule_engine: RuleEngine | None = None,
        rng: _random_mod.Random | None = None,
        interval_sec: tuple[float, float] = DEFAULT_INTERVAL_SEC,
        display_limit: int = DISPLAY_LIMIT,
    ) -> None:
        lo, hi = interval_sec
        if lo < 0 or hi < lo:
            raise ValueError(f"interval_sec must satisfy 0 <= lo <= hi, got {interval_sec}")

        self.rng = rng or _random_mod.Random()
        self.generator: EventSource = generator or EventGenerator(rng=self.rng)
        self.threat_intel = threat_intel or ThreatIntelligence()
        self.rule_engine = rule_engine or RuleEngine()
        self.interval_sec = (float(lo), float(hi))
        self.display_limit = display_limit

        self._ingest_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._control_lock = threading.Lock()

        self._events: list[NetworkEvent] = []
        self._alerts: list[Alert] = []
        self._event_type_counts: Counter[str] = Counter()
        self._source_ip_counts: Counter[str] = Counter()
        self._destination_port_counts: Counter[str] = Counter()
        self._protocol_bytes: Counter[str] = Counter()
        self._critical_count = 0
        self._stats = StatisticsAggregator()

        self._event_subscribers: SubscriberRegistry[NetworkEvent] = SubscriberRegistry("event")
        self._alert_subscribers: SubscriberRegistry[Alert] = SubscriberRegistry("alert")

        self._monitoring = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, cfg: dict[str, Any], rng: _random_mod.Random | None = None) -> NetworkAnalyzer:
        """Build a fully wired analyzer from a parsed monitor.yaml."""
        mon = cfg.get("monitor", {})
        if rng is None:
            rng = make_rng(mon.get("seed"))
        interval = mon.get("interval_sec", list(DEFAULT_INTERVAL_SEC))
        analyzer = cls(
            generator=EventGenerator.from_config(cfg.get("generator", {}), rng=rng),
            threat_intel=ThreatIntelligence.from_config(cfg.get("threat_intel", {})),
            rule_engine=RuleEngine.from_config(cfg.get("rules")),
            rng=rng,
            interval_sec=(float(interval[0]), float(interval[1])),
            display_limit=int(mon.get("display_limit", DISPLAY_LIMIT)),
        )
        if mon.get("preload_samples", False):
            analyzer.preload_samples()
        return analyzer

    # ═══════════════════════════════════════════════════════════════════
    #  Subscriptions
    # ═══════════════════════════════════════════════════════════════════

    def on_event(self, callback: Callable[[NetworkEvent], None]) -> Subscription:
        return self._event_subscribers.subscribe(callback)

    def on_alert(self, callback: Callable[[Alert], None]) -> Subscription:
        return self._alert_subscribers.subscribe(callback)

    # ═══════════════════════════════════════════════════════════════════
    #  Lifecycle
    # ═══════════════════════════════════════════════════════════════════

    def start(self) -> bool:
        """Idle -> Monitoring.  Returns False if already monitoring."""
        with self._control_lock:
            if self._monitoring:
                log.debug("start() ignored — already monitoring")
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="network-monitor",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            self._monitoring = True
            thread.start()
        log.info("Monitoring started (interval %.1f-%.1fs)", *self.interval_sec)
        return True

    def stop(self, timeout: float | None = STOP_JOIN_TIMEOUT_SEC) -> bool:
        """Monitoring -> Idle.  Returns False if already idle."""
        with self._control_lock:
            if not self._monitoring:
                return False
            self._monitoring = False
            self._stop_event.set()
            thread = self._thread
            self._thread = None

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                log.warning("Monitor thread still finishing its current event after %.1fs",
                            timeout)
        log.info("Monitoring stopped")
        return True

    def is_monitoring(self) -> bool:
        return self._monitoring

    def _run(self, stop_event: threading.Event) -> None:
        count = 0
        while not stop_event.is_set():
            try:
                event = self.generator.produce()
                if stop_event.is_set():
                    break
                self.ingest(event)
                count += 1
            except Exception:
                log.exception("Failed to process generated event — skipped")
            if stop_event.wait(self.rng.uniform(*self.interval_sec)):
                break
        log.info("Monitoring loop ended after %d events", count)

    # ═══════════════════════════════════════════════════════════════════
    #  Ingestion
    # ═══════════════════════════════════════════════════════════════════

    def ingest(self, event: NetworkEvent) -> list[Alert]:
        """Route one event through enrichment, rules and statistics.

        Returns the alerts raised for it.  Subscribers are notified after
        the state lock is released, event first, then each alert.
        """
        with self._ingest_lock:
            if event.sealed:
                raise ValueError(f"Event {event.event_id} was already ingested")
            # predicates may read analyzer state, so they run outside _state_lock
            self.threat_intel.enrich(event)
            alerts = self.rule_engine.evaluate(event)

            with self._state_lock:
                self._events.append(event)
                self._event_type_counts[event.event_type] += 1
                self._source_ip_counts[event.source_ip] += 1
                self._destination_port_counts[str(event.destination_port)] += 1
                self._protocol_bytes[event.protocol.value] += event.bytes_transferred
                if event.severity is Severity.CRITICAL:
                    self._critical_count += 1
                self._alerts.extend(alerts)
                self._stats.update(event)
                event.seal()

            for alert in alerts:
                log.warning("ALERT %s", alert)
            self._event_subscribers.publish(event)
            for alert in alerts:
                self._alert_subscribers.publish(alert)
        return alerts

    def preload_samples(self, count: int = 10) -> int:
        """Ingest the deterministic warm-up batch; returns events ingested."""
        batch = sample_events(count)
        for event in batch:
            self.ingest(event)
        log.info("Preloaded %d sample events", len(batch))
        return len(batch)

    # ═══════════════════════════════════════════════════════════════════
    #  Queries (all return copies)
    # ═══════════════════════════════════════════════════════════════════

    def list_events(self, limit: int | None = None) -> list[NetworkEvent]:
        """All events in ingestion order, or the *limit* most recent, newest first."""
        with self._state_lock:
            return _recent(self._events, limit)

    def list_alerts(self, limit: int | None = None) -> list[Alert]:
        """All alerts in creation order, or the *limit* most recent, newest first."""
        with self._state_lock:
            return _recent(self._alerts, limit)

    def recent_alerts(self) -> list[Alert]:
        return self.list_alerts(self.display_limit)

    def get_event_type_counts(self) -> dict[str, int]:
        with self._state_lock:
            return dict(self._event_type_counts)

    def get_source_ip_counts(self) -> dict[str, int]:
        with self._state_lock:
            return dict(self._source_ip_counts)

    def get_destination_port_counts(self) -> dict[str, int]:
        with self._state_lock:
            return dict(self._destination_port_counts)

    def get_protocol_bytes(self) -> dict[str, int]:
        with self._state_lock:
            return dict(self._protocol_bytes)

    def get_statistics_snapshot(self) -> NetworkStatistics:
        with self._state_lock:
            return self._stats.snapshot()

    def get_security_status(self) -> SecurityStatus:
        with self._state_lock:
            return security_status(self._critical_count, len(self._events))

    def critical_event_count(self) -> int:
        with self._state_lock:
            return self._critical_count

    def suspicious_event_count(self) -> int:
        with self._state_lock:
            return sum(1 for e in self._events if e.is_suspicious)

    def event_count(self) -> int:
        with self._state_lock:
            return len(self._events)

    def alert_count(self) -> int:
        with self._state_lock:
            return len(self._alerts)

    # ═══════════════════════════════════════════════════════════════════
    #  Rule control (delegates to the rule engine)
    # ═══════════════════════════════════════════════════════════════════

    def add_rule(
        self,
        name: str,
        description: str,
        threshold: int = 1,
        window_sec: int = 1,
        **match: Any,
    ) -> AlertRule:
        return self.rule_engine.add_rule(name, description, threshold, window_sec, **match)

    def remove_rule(self, name: str) -> AlertRule:
        return self.rule_engine.remove_rule(name)

    def mute_rule(self, name: str) -> bool:
        return self.rule_engine.mute(name)

    def unmute_rule(self, name: str) -> bool:
        return self.rule_engine.unmute(name)

    def list_rules(self) -> list[AlertRule]:
        return self.rule_engine.rules

    def muted_rules(self) -> frozenset[str]:
        return self.rule_engine.muted


def _recent(items: list[Any], limit: int | None) -> list[Any]:
    if limit is None:
        return list(items)
    if limit <= 0:
        return []
    return list(reversed(items[-limit:]))
