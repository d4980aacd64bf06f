"""Tests for human-in-the-loop decision routing."""
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.alerts import AutomationConfig
from models.enums import Action, Command, LogType, RouterState, Severity
from monitor.router import DecisionRouter
from tests.conftest import make_alert, make_status


@pytest.fixture
def router(audit_log):
    return DecisionRouter(audit_log, domain="test")


def _messages(audit_log):
    return [e.msg for e in audit_log.all()]


def test_auto_logs_each_alert_with_subject(router, audit_log):
    status = make_status(make_alert("Fever Alert", action=Action.MONITOR),
                         make_alert("Hyperglycemia Flag"))
    logged = router.route(status, AutomationConfig(), subject="PT-1001")
    assert len(logged) == 2
    assert _messages(audit_log) == [
        "[AUTO] FLAG: Hyperglycemia Flag - PT-1001",
        "[AUTO] MONITOR: Fever Alert - PT-1001",
    ]
    assert all(e.type == LogType.ALERT for e in audit_log)
    assert router.state == RouterState.MONITORING


def test_auto_log_without_subject_uses_reason(router, audit_log):
    status = make_status(make_alert("Defect Rate Threshold", reason="Defect rate at 3.0%"))
    router.route(status, AutomationConfig())
    assert _messages(audit_log) == ["[AUTO] FLAG: Defect Rate Threshold - Defect rate at 3.0%"]


def test_no_alerts_no_entries(router, audit_log):
    assert router.route(make_status(), AutomationConfig()) == []
    assert len(audit_log) == 0


def test_machine_off_does_nothing(router, audit_log):
    status = make_status(make_alert())
    router.route(status, AutomationConfig(machine_on=False, automation_on=False))
    assert len(audit_log) == 0
    assert router.state == RouterState.MONITORING


def test_automation_off_holds_alerts(router, audit_log):
    status = make_status(make_alert("A"), make_alert("B"))
    assert router.route(status, AutomationConfig(automation_on=False)) == []
    assert len(audit_log) == 0
    assert router.state == RouterState.AWAITING_APPROVAL
    assert [a.rule for a in router.pending] == ["A", "B"]


def test_reject_writes_manual_entries(router, audit_log):
    router.route(make_status(make_alert("A"), make_alert("B", action=Action.BLOCK)),
                 AutomationConfig(automation_on=False))
    assert router.reject()
    assert _messages(audit_log) == ["[REJECTED] BLOCK: B", "[REJECTED] FLAG: A"]
    assert all(e.type == LogType.MANUAL for e in audit_log)
    assert router.state == RouterState.MONITORING
    assert router.pending == []


def test_approve_writes_manual_entries(router, audit_log):
    router.route(make_status(make_alert("A")), AutomationConfig(automation_on=False))
    assert router.approve()
    assert _messages(audit_log) == ["[APPROVED] FLAG: A"]


def test_dismiss_writes_nothing(router, audit_log):
    router.route(make_status(make_alert("A")), AutomationConfig(automation_on=False))
    assert router.dismiss()
    assert len(audit_log) == 0
    assert router.state == RouterState.MONITORING


def test_routing_suspended_while_awaiting(router, audit_log):
    config = AutomationConfig(automation_on=False)
    router.route(make_status(make_alert("First")), config)
    router.route(make_status(make_alert("Second")), config)
    assert [a.rule for a in router.pending] == ["First"]

    config.automation_on = True
    assert router.route(make_status(make_alert("Third")), config) == []
    assert len(audit_log) == 0


def test_escalation_logged_then_held(router, audit_log):
    esc = make_alert("Hypertension Alert", severity=Severity.CRITICAL, action=Action.ESCALATE)
    other = make_alert("Fever Alert", action=Action.MONITOR)
    logged = router.route(make_status(esc, other), AutomationConfig(), subject="PT-7")
    assert len(logged) == 2
    assert len(audit_log) == 2
    assert router.state == RouterState.AWAITING_ESCALATION_APPROVAL
    assert router.pending == [esc]


def test_escalation_approve(router, audit_log):
    esc = make_alert("Critical Severity - Human Escalation", severity=Severity.CRITICAL, action=Action.ESCALATE)
    router.route(make_status(esc), AutomationConfig())
    assert router.approve()
    latest = audit_log.latest()
    assert latest.msg == "[ESCALATION AUTHORIZED] Critical Severity - Human Escalation"
    assert latest.type == LogType.ALERT
    assert router.state == RouterState.MONITORING


def test_escalation_cannot_be_rejected(router, audit_log):
    esc = make_alert("E", severity=Severity.CRITICAL, action=Action.ESCALATE)
    router.route(make_status(esc), AutomationConfig())
    before = len(audit_log)
    assert router.reject() is False
    assert len(audit_log) == before
    assert router.state == RouterState.AWAITING_ESCALATION_APPROVAL


def test_escalation_dismiss(router, audit_log):
    esc = make_alert("E", severity=Severity.CRITICAL, action=Action.ESCALATE)
    router.route(make_status(esc), AutomationConfig())
    before = len(audit_log)
    assert router.dismiss()
    assert len(audit_log) == before
    assert router.state == RouterState.MONITORING


def test_escalation_with_automation_off_goes_through_approval(router, audit_log):
    esc = make_alert("E", severity=Severity.CRITICAL, action=Action.ESCALATE)
    router.route(make_status(esc), AutomationConfig(automation_on=False))
    assert router.state == RouterState.AWAITING_APPROVAL


@pytest.mark.parametrize("command", list(Command))
def test_commands_without_pending_are_ignored(router, audit_log, command):
    assert router.handle(command) is False
    assert len(audit_log) == 0
    assert router.state == RouterState.MONITORING


def test_handle_accepts_strings(router):
    router.route(make_status(make_alert()), AutomationConfig(automation_on=False))
    assert router.handle("dismiss")
    with pytest.raises(ValueError):
        router.handle("shrug")


def test_available_commands(router):
    assert router.available_commands() == []
    router.route(make_status(make_alert()), AutomationConfig(automation_on=False))
    assert router.available_commands() == [Command.APPROVE, Command.REJECT, Command.DISMISS]
    router.dismiss()
    router.route(make_status(make_alert(action=Action.ESCALATE)), AutomationConfig())
    assert router.available_commands() == [Command.APPROVE, Command.DISMISS]
