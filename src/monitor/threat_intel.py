"""Threat intelligence — known-malicious indicator lookup."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from src.contracts.event import NetworkEvent

log = logging.getLogger(__name__)

DEFAULT_MALICIOUS_IPS: tuple[str, ...] = ("198.51.100.1", "203.0.113.1", "192.0.2.1")

THREAT_INTEL_KEY = "threat_intel"
MALICIOUS_IP_NOTE = "Known malicious IP"


class ThreatIntelligence:
    """Tags events whose source IP is a known-malicious indicator.

    The indicator set is fixed at construction.  ``enrich`` is the whole
    interface, so an external feed can replace this class later.
    """

    def __init__(self, malicious_ips: Iterable[str] | None = None) -> None:
        ips = DEFAULT_MALICIOUS_IPS if malicious_ips is None else malicious_ips
        self._malicious_ips: frozenset[str] = frozenset(ips)
        log.info("Threat intel loaded: %d malicious IPs", len(self._malicious_ips))

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> ThreatIntelligence:
        return cls(cfg.get("malicious_ips"))

    @property
    def malicious_ips(self) -> frozenset[str]:
        return self._malicious_ips

    def is_malicious(self, ip: str) -> bool:
        return ip in self._malicious_ips

    def enrich(self, event: NetworkEvent) -> bool:
        """Add a ``threat_intel`` entry when the source IP is known-bad.

        Returns True when the event was tagged.
        """
        if event.source_ip not in self._malicious_ips:
            return False
        event.add_data(THREAT_INTEL_KEY, MALICIOUS_IP_NOTE)
        log.debug("Threat intel hit: %s from %s", event.event_id, event.source_ip)
        return True
