"""Shared test fixtures."""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from alerts.rules_manager import DomainRegistry
from audit.log import AuditLog
from models.alerts import Alert, Status
from models.enums import Action, Severity
from models.telemetry import TelemetryRecord
from monitor.control import MasterControl


@pytest.fixture(scope="session")
def registry():
    """All bundled domain rule sets."""
    return DomainRegistry()


@pytest.fixture
def healthcare(registry):
    return registry.get("healthcare")


@pytest.fixture
def credit(registry):
    return registry.get("credit")


@pytest.fixture
def disaster(registry):
    return registry.get("disaster")


@pytest.fixture
def manufacturing(registry):
    return registry.get("manufacturing")


@pytest.fixture
def logistics(registry):
    return registry.get("logistics")


@pytest.fixture
def audit_log():
    return AuditLog(domain="test")


@pytest.fixture
def control():
    return MasterControl()


def make_record(domain, **fields):
    return TelemetryRecord(domain=domain, fields=fields, source="test")


def make_alert(rule="Test Rule", severity=Severity.WARNING, action=Action.FLAG, reason="reason"):
    return Alert(rule=rule, reason=reason, confidence=80, severity=severity, action=action, rule_id=rule.lower())


def make_status(*alerts):
    from alerts.aggregator import overall_severity
    return Status(
        alerts=list(alerts),
        overall_status=overall_severity(alerts),
        needs_escalation=any(a.action == Action.ESCALATE for a in alerts),
    )


# Normal vitals: no healthcare rule fires
NORMAL_VITALS = {
    "heartRate": 80, "systolic": 120, "diastolic": 80,
    "bloodSugar": 100, "oxygenSat": 97, "bodyTemp": 37.0, "patientId": "PT-1001",
}
