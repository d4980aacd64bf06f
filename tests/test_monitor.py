"""Tests for the domain monitor cycle, scheduling and master control."""
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.enums import LogType, MonitorMode, RouterState, Severity
from monitor.control import MasterControl
from monitor.generators import GENERATORS, TelemetryGenerator
from monitor.monitor import DomainMonitor
from monitor.scheduler import MonitorScheduler
from tests.conftest import NORMAL_VITALS, make_record

CRISIS = dict(NORMAL_VITALS, systolic=190, diastolic=125)


class ListChannel:
    def __init__(self):
        self.sent = []

    def send(self, alert, domain=""):
        self.sent.append((domain, alert.rule))


class BrokenChannel:
    def send(self, alert, domain=""):
        raise RuntimeError("boom")


class FixedGenerator:
    """Returns the same record every call."""
    def __init__(self, domain, fields):
        self.domain = domain
        self.fields = fields
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return make_record(self.domain, **self.fields)


@pytest.fixture
def monitor(healthcare, control):
    return DomainMonitor(healthcare, control, generator=FixedGenerator("healthcare", NORMAL_VITALS))


# ── Cycle ──────────────────────────────────────────────

def test_cycle_with_normal_record(monitor):
    status = monitor.run_cycle()
    assert status.overall_status == Severity.OK
    assert monitor.last_status is status
    assert len(monitor.audit_log) == 0
    assert list(monitor.history["heartRate"]) == [80]


def test_cycle_logs_with_subject(monitor):
    monitor.run_cycle(make_record("healthcare", **CRISIS))
    assert monitor.audit_log.all()[0].msg == "[AUTO] ESCALATE: Hypertension Alert - PT-1001"
    assert monitor.router.state == RouterState.AWAITING_ESCALATION_APPROVAL


def test_credit_subject_is_masked_card(credit, control):
    m = DomainMonitor(credit, control)
    m.run_cycle(make_record("credit", amount=6000, locationMismatch=True, cardLast4="4242"))
    assert m.audit_log.latest().msg == "[AUTO] FLAG: High Amount + Foreign Location - Card ****4242"


def test_manufacturing_subject_falls_back_to_reason(manufacturing, control):
    m = DomainMonitor(manufacturing, control)
    m.run_cycle(make_record("manufacturing", machineLoad=90, defectPercent=3, furnaceTemp=850, dieWear=40))
    assert m.audit_log.latest().msg == "[AUTO] FLAG: Defect Rate Threshold - Defect rate at 3.0% - exceeds 2% threshold"


def test_machine_off_skips_cycle(monitor, control):
    control.set_machine(False)
    assert monitor.idle
    assert monitor.run_cycle() is None
    assert monitor.generator.calls == 0
    assert monitor.summary()["overall_status"] == "idle"


def test_automation_off_holds_then_reject(monitor, control):
    control.set_automation(False)
    monitor.run_cycle(make_record("healthcare", **dict(NORMAL_VITALS, heartRate=130, oxygenSat=90)))
    assert len(monitor.audit_log) == 0
    assert monitor.router.state == RouterState.AWAITING_APPROVAL
    assert monitor.reject()
    assert len(monitor.audit_log) == 3
    assert all(e.type == LogType.MANUAL for e in monitor.audit_log)
    assert monitor.router.state == RouterState.MONITORING


def test_cycles_continue_while_awaiting(monitor, control):
    control.set_automation(False)
    monitor.run_cycle(make_record("healthcare", **CRISIS))
    status = monitor.run_cycle(make_record("healthcare", **dict(NORMAL_VITALS, heartRate=130)))
    assert status.alerts[0].rule == "Tachycardia - Critical HR"
    assert [a.rule for a in monitor.router.pending] == ["Hypertension Alert"]


def test_channels_receive_auto_logged_alerts(healthcare, control):
    channel = ListChannel()
    m = DomainMonitor(healthcare, control, channels=[BrokenChannel(), channel])
    m.run_cycle(make_record("healthcare", **dict(NORMAL_VITALS, bloodSugar=200)))
    assert channel.sent == [("healthcare", "Hyperglycemia Flag")]


def test_channels_skip_held_alerts(healthcare, control):
    channel = ListChannel()
    control.set_automation(False)
    m = DomainMonitor(healthcare, control, channels=[channel])
    m.run_cycle(make_record("healthcare", **dict(NORMAL_VITALS, bloodSugar=200)))
    assert channel.sent == []


def test_history_window_bounded(healthcare, control):
    m = DomainMonitor(healthcare, control, generator=FixedGenerator("healthcare", NORMAL_VITALS),
                      history_window=5)
    for _ in range(8):
        m.run_cycle()
    assert len(m.history["labels"]) == 5
    assert len(m.history["systolic"]) == 5


def test_domains_are_isolated(healthcare, credit, control):
    h = DomainMonitor(healthcare, control)
    c = DomainMonitor(credit, control)
    h.run_cycle(make_record("healthcare", **CRISIS))
    assert len(c.audit_log) == 0
    assert not c.router.awaiting


def test_notes(monitor, manufacturing, control):
    assert monitor.add_note("Checked cuff").msg == "[MANUAL OVERRIDE] Checked cuff"
    assert monitor.add_intervention_note("Administered labetalol").msg == \
        "[DOCTOR] Intervention note: Administered labetalol"
    assert monitor.add_intervention_note("  ") is None
    assert DomainMonitor(manufacturing, control).add_note("Die swapped").msg == "[MANUAL] Die swapped"


# ── Dataset mode ───────────────────────────────────────

def test_load_dataset(healthcare, control):
    m = DomainMonitor(healthcare, control, generator=FixedGenerator("healthcare", NORMAL_VITALS))
    rows = [
        {"systolic": 190, "diastolic": 125, "hr": 80, "spo2": 97, "temp": 37, "sugar": 100},
        {"systolic": 120, "diastolic": 80, "hr": 80, "spo2": 97, "temp": 37, "sugar": 100},
    ]
    results = m.load_dataset(rows)
    assert [r.row for r in results] == [1, 2]
    assert results[0].status.overall_status == Severity.CRITICAL
    assert results[0].record["patientId"] == "PT-1"
    assert results[1].status.overall_status == Severity.OK
    assert m.mode == MonitorMode.DATASET
    assert list(m.history["labels"]) == ["R1", "R2"]
    assert m.audit_log.latest().msg == "Dataset loaded: 2 rows processed"
    assert m.audit_log.latest().type == LogType.MANUAL
    assert not m.router.awaiting


def test_dataset_mode_pauses_live_cycles(monitor):
    monitor.load_dataset([{"systolic": 120}])
    assert monitor.run_cycle() is None
    assert monitor.generator.calls == 0
    monitor.set_mode("live")
    assert monitor.run_cycle() is not None


def test_export_audit(monitor):
    monitor.add_note("hello")
    attachment = monitor.export_audit(timestamp_ms=42)
    assert attachment.filename == "healthcare_audit_42.txt"
    assert "[MANUAL OVERRIDE] hello" in attachment.content


# ── Scheduler & control ────────────────────────────────

def test_scheduler_runs_cycles(monitor):
    scheduler = MonitorScheduler(monitor)
    seen = []
    scheduler.on_cycle(lambda m, status: seen.append(status.overall_status))
    scheduler.start()
    assert scheduler.interval == 2.0
    scheduler._scheduler.run_all()
    scheduler.run_now()
    assert scheduler.cycles == 2
    assert seen == [Severity.OK, Severity.OK]


def test_scheduler_run_stops_at_max_cycles(monitor):
    scheduler = MonitorScheduler(monitor, interval_seconds=0.5)
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        scheduler._scheduler.run_all()

    scheduler.run(max_cycles=3, sleep=fake_sleep)
    assert scheduler.cycles == 3
    assert monitor.generator.calls == 3


def test_machine_off_cancels_timer_synchronously(monitor, control):
    scheduler = MonitorScheduler(monitor)
    control.attach(scheduler)
    scheduler.start()
    control.set_machine(False)
    assert not scheduler.running
    scheduler.run_pending()
    scheduler.run_now()
    assert monitor.generator.calls == 0

    control.set_machine(True)
    assert scheduler.running


def test_stop_from_callback_ends_run_loop(monitor, control):
    scheduler = MonitorScheduler(monitor)
    control.attach(scheduler)
    scheduler.on_cycle(lambda m, status: control.set_machine(False))
    scheduler.run(max_cycles=10, sleep=lambda s: None)
    assert scheduler.cycles == 1


def test_cycle_failures_are_counted(healthcare, control):
    def broken():
        raise RuntimeError("sensor offline")

    m = DomainMonitor(healthcare, control, generator=broken)
    scheduler = MonitorScheduler(m)
    scheduler.start()
    for _ in range(5):
        scheduler.run_now()
    assert scheduler.cycles == 0
    assert scheduler._consecutive_failures == 5


def test_control_toggles(control):
    assert control.toggle_automation() is False
    assert control.config.automation_on is False
    assert control.toggle_machine() is False
    assert control.toggle_machine() is True


def test_initial_toggles():
    control = MasterControl(machine_on=False, automation_on=False)
    assert control.config.machine_on is False
    assert control.config.automation_on is False


# ── Synthetic telemetry ────────────────────────────────

@pytest.mark.parametrize("domain", sorted(GENERATORS))
def test_generators_cover_rule_fields(registry, domain):
    record = TelemetryGenerator(domain, seed=7)()
    assert record.domain == domain
    assert record.source == "live"
    rule_set = registry.get(domain)
    for name in rule_set.history_fields:
        assert name in record


def test_generator_is_seeded():
    a = TelemetryGenerator("logistics", seed=1)()
    b = TelemetryGenerator("logistics", seed=1)()
    assert dict(a.fields) == dict(b.fields)


def test_unknown_generator():
    with pytest.raises(KeyError):
        TelemetryGenerator("aviation")
