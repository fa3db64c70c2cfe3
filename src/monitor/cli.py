"""CLI entry-point for the SOC Network Monitor.

Usage examples
--------------
# Monitor for one minute with the shipped config:
python -m src.monitor.cli --config config/monitor.yaml --duration-sec 60

# Deterministic run, warm-up batch preloaded, until Ctrl+C:
python -m src.monitor.cli --seed 7 --preload-samples
"""

from __future__ import annotations

import argparse
import threading

from src.contracts.alert import Alert
from src.monitor.analyzer import NetworkAnalyzer
from src.shared.config_loader import load_config
from src.shared.logger import setup_logging


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="network-monitor",
        description="SOC Network Monitor — simulate traffic, enrich, raise alerts",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to monitor.yaml. If omitted, built-in defaults are used.",
    )
    p.add_argument(
        "--duration-sec",
        type=float,
        default=None,
        help="Stop after this many seconds. Default: run until Ctrl+C.",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for deterministic traffic (overrides monitor.seed).",
    )
    p.add_argument(
        "--preload-samples",
        action="store_true",
        default=False,
        help="Ingest the ten-event warm-up batch before monitoring starts.",
    )
    p.add_argument(
        "--mute",
        default="",
        help="Comma-separated rule names to mute from the start.",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO",
    )
    return p


def run(argv: list[str] | None = None) -> NetworkAnalyzer:
    """Parse *argv*, monitor until the duration elapses, return the analyzer."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    cfg = load_config(args.config)
    mon = cfg.setdefault("monitor", {})
    if args.seed is not None:
        mon["seed"] = args.seed
    if args.preload_samples:
        mon["preload_samples"] = True

    analyzer = NetworkAnalyzer.from_config(cfg)
    for name in filter(None, (n.strip() for n in args.mute.split(","))):
        analyzer.mute_rule(name)

    def _on_alert(alert: Alert) -> None:
        print(f"ALERT TRIGGERED: {alert}")

    analyzer.on_alert(_on_alert)

    print("Network monitor running. Press Ctrl+C to stop.")
    analyzer.start()
    try:
        threading.Event().wait(args.duration_sec)
    except KeyboardInterrupt:
        print()
    finally:
        analyzer.stop()

    stats = analyzer.get_statistics_snapshot()
    print(
        f"Status: {analyzer.get_security_status().value} | "
        f"events={stats.total_connections} alerts={analyzer.alert_count()} "
        f"bytes={stats.total_bytes_transferred:,}"
    )
    return analyzer


def main(argv: list[str] | None = None) -> None:
    run(argv)


if __name__ == "__main__":
    main()
