"""Tests for src.contracts — NetworkEvent, Alert, AlertRule, enums."""

from __future__ import annotations

import dataclasses
import json

import pytest

from src.contracts.alert import Alert, AlertRule
from src.contracts.enums import Protocol, SecurityStatus, Severity
from src.contracts.errors import EventSealedError, MonitorError, UnknownRuleError
from src.contracts.event import NetworkEvent
from tests.conftest import make_alert, make_event

# ═══════════════════════════════════════════════════════════════════════════
#  NetworkEvent
# ═══════════════════════════════════════════════════════════════════════════


class TestNetworkEvent:
    def test_ids_are_unique(self):
        ids = {make_event().event_id for _ in range(50)}
        assert len(ids) == 50

    def test_id_format(self):
        assert make_event().event_id.startswith("EVT-")

    def test_timestamp_is_utc(self):
        ev = make_event()
        assert ev.timestamp.tzinfo is not None
        assert ev.timestamp.utcoffset().total_seconds() == 0

    def test_string_labels_coerced_to_enums(self):
        ev = make_event(protocol="UDP", severity="HIGH")
        assert ev.protocol is Protocol.UDP
        assert ev.severity is Severity.HIGH

    def test_unknown_protocol_rejected(self):
        with pytest.raises(ValueError):
            make_event(protocol="SCTP")

    def test_unknown_severity_rejected(self):
        with pytest.raises(ValueError):
            make_event(severity="SEVERE")

    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValueError, match="source_port"):
            make_event(source_port=port)
        with pytest.raises(ValueError, match="destination_port"):
            make_event(destination_port=port)

    def test_port_bounds_accepted(self):
        ev = make_event(source_port=1, destination_port=65535)
        assert ev.source_port == 1
        assert ev.destination_port == 65535

    def test_negative_bytes_rejected(self):
        with pytest.raises(ValueError, match="bytes_transferred"):
            make_event(bytes_transferred=-5)

    @pytest.mark.parametrize("ip", ["localhost", "10.0.0", "1.2.3.4.5", ""])
    def test_malformed_ip_rejected(self, ip):
        with pytest.raises(ValueError, match="dotted-quad"):
            make_event(source_ip=ip)

    def test_bytes_settable_before_seal(self):
        ev = make_event()
        ev.bytes_transferred = 1234
        assert ev.bytes_transferred == 1234

    def test_negative_bytes_assignment_rejected(self):
        ev = make_event(bytes_transferred=100)
        with pytest.raises(ValueError, match="bytes_transferred"):
            ev.bytes_transferred = -500
        assert ev.bytes_transferred == 100

    @pytest.mark.parametrize(
        "field, value",
        [
            ("severity", "BOGUS"),
            ("source_port", 0),
            ("event_type", "OTHER"),
            ("source_ip", "1.1.1.1"),
            ("protocol", Protocol.UDP),
            ("event_id", "EVT-X"),
        ],
    )
    def test_fixed_fields_read_only_after_construction(self, field, value):
        ev = make_event(event_type="PORT_SCAN")
        before = getattr(ev, field)
        with pytest.raises(dataclasses.FrozenInstanceError):
            setattr(ev, field, value)
        assert getattr(ev, field) == before

    def test_additional_data_replaceable_before_seal(self):
        ev = make_event()
        ev.additional_data = {"k": "v"}
        assert ev.additional_data == {"k": "v"}

    def test_add_data_before_seal(self):
        ev = make_event()
        ev.add_data("threat_intel", "Known malicious IP")
        assert ev.additional_data == {"threat_intel": "Known malicious IP"}

    def test_additional_data_copied_from_caller(self):
        data = {"k": "v"}
        ev = NetworkEvent(
            source_ip="10.0.0.1", destination_ip="10.0.0.2",
            source_port=1, destination_port=2,
            protocol=Protocol.TCP, event_type="X", severity=Severity.LOW,
            description="d", additional_data=data,
        )
        data["other"] = "x"
        assert "other" not in ev.additional_data


class TestSealedEvent:
    @pytest.fixture
    def sealed(self):
        ev = make_event(event_type="FAILED_LOGIN")
        ev.add_data("threat_intel", "Known malicious IP")
        ev.seal()
        return ev

    def test_sealed_flag(self, sealed):
        assert sealed.sealed is True

    @pytest.mark.parametrize(
        "field, value",
        [
            ("bytes_transferred", 1),
            ("source_ip", "1.1.1.1"),
            ("destination_port", 80),
            ("event_type", "OTHER"),
            ("severity", Severity.LOW),
        ],
    )
    def test_assignment_rejected(self, sealed, field, value):
        with pytest.raises(EventSealedError):
            setattr(sealed, field, value)

    def test_add_data_rejected(self, sealed):
        with pytest.raises(EventSealedError):
            sealed.add_data("k", "v")

    def test_additional_data_read_only(self, sealed):
        with pytest.raises(TypeError):
            sealed.additional_data["k"] = "v"
        assert sealed.additional_data["threat_intel"] == "Known malicious IP"

    def test_seal_is_idempotent(self, sealed):
        sealed.seal()
        assert sealed.sealed

    def test_sealed_error_is_attribute_error(self):
        assert issubclass(EventSealedError, AttributeError)
        assert issubclass(EventSealedError, MonitorError)


class TestEventHelpers:
    @pytest.mark.parametrize(
        "event_type, severity, expected",
        [
            ("NORMAL_TRAFFIC", Severity.LOW, False),
            ("FAILED_LOGIN", Severity.MEDIUM, False),
            ("PORT_SCAN", Severity.HIGH, True),
            ("DATA_EXFIL", Severity.CRITICAL, True),
            ("ANOMALY_DETECTED", Severity.LOW, True),
            ("INTRUSION_ATTEMPT", Severity.LOW, True),
            ("MALWARE_COMM", Severity.LOW, True),
        ],
    )
    def test_is_suspicious(self, event_type, severity, expected):
        assert make_event(event_type=event_type, severity=severity).is_suspicious is expected

    def test_to_json(self):
        ev = make_event(event_type="DNS_QUERY", protocol="DNS", destination_port=53,
                        bytes_transferred=77)
        data = json.loads(ev.to_json())
        assert data["event_id"] == ev.event_id
        assert data["protocol"] == "DNS"
        assert data["severity"] == "LOW"
        assert data["bytes_transferred"] == 77
        assert data["timestamp"].endswith("Z")

    def test_str_contains_endpoints(self):
        ev = make_event(source_ip="10.0.0.1", source_port=1111,
                        destination_ip="10.0.0.2", destination_port=22)
        text = str(ev)
        assert "10.0.0.1:1111 -> 10.0.0.2:22" in text
        assert "NORMAL_TRAFFIC" in text


# ═══════════════════════════════════════════════════════════════════════════
#  Alert / AlertRule
# ═══════════════════════════════════════════════════════════════════════════


class TestAlert:
    def test_from_event_copies_fields(self):
        ev = make_event(event_type="MALWARE_COMM", description="bad stuff")
        rule = AlertRule("MALWARE_COMM", "Malware communication detected")
        alert = Alert.from_event(ev, rule)
        assert alert.alert_type == "MALWARE_COMM"
        assert alert.description == "Malware communication detected"
        assert alert.severity is Severity.CRITICAL
        assert alert.source_ip == ev.source_ip
        assert alert.destination_ip == ev.destination_ip
        assert alert.event_description == "bad stuff"
        assert alert.event_id == ev.event_id

    def test_alert_is_immutable(self):
        alert = make_alert()
        with pytest.raises(dataclasses.FrozenInstanceError):
            alert.severity = Severity.LOW

    def test_alert_ids_unique(self):
        assert make_alert().alert_id != make_alert().alert_id

    def test_to_dict(self):
        d = make_alert(alert_type="PORT_SCAN").to_dict()
        assert d["alert_type"] == "PORT_SCAN"
        assert d["alert_id"].startswith("ALR-")

    def test_str(self):
        text = str(make_alert())
        assert "BRUTE_FORCE" in text
        assert "192.168.1.10 -> 10.0.0.20" in text


class TestAlertRule:
    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            AlertRule("", "nothing")

    def test_has_match(self):
        assert not AlertRule("X", "x").has_match
        assert AlertRule("X", "x", markers=["A"]).has_match
        assert AlertRule("X", "x", min_bytes=0).has_match

    def test_markers_stored_as_tuple(self):
        assert AlertRule("X", "x", markers=["A", "B"]).markers == ("A", "B")

    def test_rule_is_immutable(self):
        rule = AlertRule("X", "x", markers=["A"])
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.markers = ("B",)
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.description = "changed"


# ═══════════════════════════════════════════════════════════════════════════
#  Enums / errors
# ═══════════════════════════════════════════════════════════════════════════


class TestEnums:
    def test_severity_order(self):
        ranks = [s.rank for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 4

    def test_str_values(self):
        assert Severity.CRITICAL == "CRITICAL"
        assert Protocol.HTTPS == "HTTPS"
        assert SecurityStatus.UNKNOWN.value == "UNKNOWN"

    def test_unknown_rule_error_carries_name(self):
        err = UnknownRuleError("NOPE")
        assert err.name == "NOPE"
        assert "NOPE" in str(err)
