"""SOC Network Monitor — real-time event pipeline.

Modules
───────
  threat_intel — static indicator lookup, enriches events
  rules        — name-keyed rule registry: NetworkEvent → Alerts
  statistics   — running byte / connection totals
  pubsub       — ordered subscriber registry for events and alerts
  analyzer     — orchestrator: background loop, ingest, snapshots
  cli          — argparse entry-point
"""
