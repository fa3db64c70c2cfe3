"""Rule engine — name-keyed registry: NetworkEvent → Alerts.

Each registered rule pairs an ``AlertRule`` with a predicate closure.
``evaluate`` walks the registry in registration order and creates one
Alert per matching, unmuted rule.  Evaluation is stateless per event;
``threshold`` / ``window_sec`` are stored but not applied.

Default rules
─────────────
  BRUTE_FORCE        — event_type contains FAILED_LOGIN or AUTH_FAILURE
  PORT_SCAN          — event_type contains PORT_SCAN or RECON
  MALWARE_COMM       — event_type contains MALWARE or C2_COMMUNICATION
  DATA_EXFILTRATION  — bytes_transferred > 100 000 000 or DATA_EXFIL
  ANOMALY_DETECTED   — event_type contains ANOMALY
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable

from src.contracts.alert import Alert, AlertRule
from src.contracts.errors import UnknownRuleError
from src.contracts.event import NetworkEvent

log = logging.getLogger(__name__)

Predicate = Callable[[NetworkEvent], bool]

EXFIL_BYTES_THRESHOLD = 100_000_000

DEFAULT_RULES: tuple[AlertRule, ...] = (
    AlertRule("BRUTE_FORCE", "Multiple failed login attempts", 5, 300,
              markers=("FAILED_LOGIN", "AUTH_FAILURE")),
    AlertRule("PORT_SCAN", "Port scanning detected", 10, 60,
              markers=("PORT_SCAN", "RECON")),
    AlertRule("MALWARE_COMM", "Malware communication detected", 1, 1,
              markers=("MALWARE", "C2_COMMUNICATION")),
    AlertRule("DATA_EXFILTRATION", "Large data transfer detected", 1, 1,
              markers=("DATA_EXFIL",), min_bytes=EXFIL_BYTES_THRESHOLD),
    AlertRule("ANOMALY_DETECTED", "Network anomaly detected", 1, 1,
              markers=("ANOMALY",)),
)

_DEFAULTS_BY_NAME: dict[str, AlertRule] = {r.name: r for r in DEFAULT_RULES}


def match_predicate(markers: Iterable[str], min_bytes: int | None = None) -> Predicate:
    """Build a predicate: any marker in event_type, or bytes above *min_bytes*."""
    marker_set = tuple(markers)

    def _match(event: NetworkEvent) -> bool:
        if min_bytes is not None and event.bytes_transferred > min_bytes:
            return True
        return any(m in event.event_type for m in marker_set)

    return _match


def _never(event: NetworkEvent) -> bool:
    return False


class RuleEngine:
    """Thread-safe rule registry with per-rule mute flags."""

    def __init__(self, rules: Iterable[AlertRule] | None = None) -> None:
        self._lock = threading.Lock()
        self._rules: dict[str, tuple[AlertRule, Predicate]] = {}
        self._muted: set[str] = set()
        for rule in DEFAULT_RULES if rules is None else rules:
            self.register(rule)

    @classmethod
    def from_config(cls, rules_cfg: list[dict[str, Any]] | None) -> RuleEngine:
        """Build from the ``rules`` list of monitor.yaml.

        ``None`` yields the default catalog; an empty list yields an empty
        engine.  Entries with ``enabled: false`` are skipped.
        """
        if rules_cfg is None:
            return cls()
        engine = cls(rules=[])
        for entry in rules_cfg:
            if not entry.get("enabled", True):
                log.info("Rule %s disabled in config — skipped", entry.get("name"))
                continue
            match = entry.get("match") or {}
            engine.add_rule(
                entry["name"],
                entry.get("description", ""),
                threshold=int(entry.get("threshold", 1)),
                window_sec=int(entry.get("window_sec", 1)),
                markers=match.get("markers"),
                min_bytes=match.get("min_bytes"),
            )
        return engine

    # ── registration ─────────────────────────────────────────────────────

    def register(self, rule: AlertRule, predicate: Predicate | None = None) -> None:
        """Add *rule*, or replace the rule with the same name in place."""
        if predicate is None:
            predicate = self._predicate_for(rule)
        with self._lock:
            replaced = rule.name in self._rules
            self._rules[rule.name] = (rule, predicate)
        log.info("Rule %s %s", rule.name, "replaced" if replaced else "registered")

    def add_rule(
        self,
        name: str,
        description: str,
        threshold: int = 1,
        window_sec: int = 1,
        markers: Iterable[str] | None = None,
        min_bytes: int | None = None,
        predicate: Predicate | None = None,
    ) -> AlertRule:
        rule = AlertRule(
            name=name,
            description=description,
            threshold=threshold,
            window_sec=window_sec,
            markers=tuple(markers or ()),
            min_bytes=min_bytes,
        )
        self.register(rule, predicate)
        return rule

    def remove_rule(self, name: str) -> AlertRule:
        with self._lock:
            if name not in self._rules:
                raise UnknownRuleError(name)
            rule, _ = self._rules.pop(name)
            self._muted.discard(name)
        log.info("Rule %s removed", name)
        return rule

    @staticmethod
    def _predicate_for(rule: AlertRule) -> Predicate:
        if rule.has_match:
            return match_predicate(rule.markers, rule.min_bytes)
        default = _DEFAULTS_BY_NAME.get(rule.name)
        if default is not None:
            return match_predicate(default.markers, default.min_bytes)
        log.warning("Rule %s has no match definition and will never fire", rule.name)
        return _never

    # ── mute flags ───────────────────────────────────────────────────────

    def mute(self, name: str) -> bool:
        """Suppress alerts of *name*.  Returns False if it was already muted."""
        with self._lock:
            if name not in self._rules:
                raise UnknownRuleError(name)
            if name in self._muted:
                return False
            self._muted.add(name)
        log.info("Alert type '%s' muted", name)
        return True

    def unmute(self, name: str) -> bool:
        """Re-enable alerts of *name*.  Returns False if it was not muted."""
        with self._lock:
            if name not in self._rules:
                raise UnknownRuleError(name)
            if name not in self._muted:
                return False
            self._muted.discard(name)
        log.info("Alert type '%s' unmuted", name)
        return True

    def is_muted(self, name: str) -> bool:
        with self._lock:
            return name in self._muted

    @property
    def muted(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._muted)

    @property
    def rules(self) -> list[AlertRule]:
        with self._lock:
            return [rule for rule, _ in self._rules.values()]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._rules

    # ── evaluation ───────────────────────────────────────────────────────

    def evaluate(self, event: NetworkEvent) -> list[Alert]:
        with self._lock:
            active = [
                (rule, predicate)
                for name, (rule, predicate) in self._rules.items()
                if name not in self._muted
            ]

        alerts: list[Alert] = []
        for rule, predicate in active:
            try:
                fired = predicate(event)
            except Exception:
                log.exception("Rule %s failed on %s — treated as no match",
                              rule.name, event.event_id)
                continue
            if fired:
                alerts.append(Alert.from_event(event, rule))

        if alerts:
            log.debug("%s triggered %s", event.event_id,
                      ", ".join(a.alert_type for a in alerts))
        return alerts
