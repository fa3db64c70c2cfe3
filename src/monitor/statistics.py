"""Running traffic statistics over the event stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from src.contracts.event import NetworkEvent

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NetworkStatistics:
    """Point-in-time view of the aggregator's totals."""

    total_bytes_transferred: int
    total_connections: int
    start_time: datetime

    def elapsed_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(tz=timezone.utc)
        return max((now - self.start_time).total_seconds(), 0.0)

    def bytes_per_second(self, now: datetime | None = None) -> float:
        elapsed = self.elapsed_seconds(now)
        return self.total_bytes_transferred / elapsed if elapsed > 0 else 0.0

    def connections_per_second(self, now: datetime | None = None) -> float:
        elapsed = self.elapsed_seconds(now)
        return self.total_connections / elapsed if elapsed > 0 else 0.0

    @property
    def total_megabytes(self) -> float:
        return self.total_bytes_transferred / (1024.0 * 1024.0)


class StatisticsAggregator:
    """Additive byte and connection counters.

    Not locked: the analyzer is the single writer and serialises access.
    """

    def __init__(self, start_time: datetime | None = None) -> None:
        self._start_time = start_time or datetime.now(tz=timezone.utc)
        self._total_bytes = 0
        self._total_connections = 0

    def update(self, event: NetworkEvent) -> None:
        self._total_bytes += event.bytes_transferred
        self._total_connections += 1

    def snapshot(self) -> NetworkStatistics:
        return NetworkStatistics(
            total_bytes_transferred=self._total_bytes,
            total_connections=self._total_connections,
            start_time=self._start_time,
        )

    def reset(self, start_time: datetime | None = None) -> None:
        """Full reinitialisation — the only way the totals go down."""
        self._start_time = start_time or datetime.now(tz=timezone.utc)
        self._total_bytes = 0
        self._total_connections = 0
        log.info("Statistics reset")
