"""Event Contract — canonical data structures shared by all modules."""

from src.contracts.alert import Alert, AlertRule
from src.contracts.enums import Protocol, SecurityStatus, Severity
from src.contracts.errors import EventSealedError, MonitorError, UnknownRuleError
from src.contracts.event import NetworkEvent

__all__ = [
    "Alert",
    "AlertRule",
    "EventSealedError",
    "MonitorError",
    "NetworkEvent",
    "Protocol",
    "SecurityStatus",
    "Severity",
    "UnknownRuleError",
]
