"""DomainMonitor - per-domain orchestrator for evaluation cycles."""
import logging
from collections import deque

from alerts.aggregator import StatusAggregator
from alerts.engine import RuleEngine
from alerts.whatif import WhatIfEvaluator
from audit.export import build_export
from audit.log import AuditLog
from ingest.normalizer import RecordNormalizer
from models.alerts import DatasetResult
from models.enums import LogType, MonitorMode
from monitor.router import DecisionRouter
from utils.formatters import format_clock, render_template

logger = logging.getLogger("cogsync.monitor")

DEFAULT_HISTORY_WINDOW = 30


class DomainMonitor:
    """Runs record -> RuleEngine -> StatusAggregator -> DecisionRouter for one domain.

    Owns the domain's audit log, router and history windows; nothing here is
    shared with other domains. Toggles are read from `control.config` on every
    cycle and never written.
    """

    def __init__(self, rule_set, control, generator=None, audit_log=None, channels=None,
                 history_window=DEFAULT_HISTORY_WINDOW, engine=None):
        self.rule_set = rule_set
        self.domain = rule_set.domain
        self.control = control
        self.generator = generator
        self.engine = engine or RuleEngine()
        self.aggregator = StatusAggregator(rule_set)
        self.audit_log = audit_log or AuditLog(domain=self.domain)
        self.router = DecisionRouter(self.audit_log, domain=self.domain)
        self.normalizer = RecordNormalizer(rule_set)
        self.whatif = WhatIfEvaluator(rule_set, engine=self.engine)
        self.channels = channels or []
        self.mode = MonitorMode.LIVE
        self.history_window = history_window
        self.history = self._empty_history()
        self.last_record = None
        self.last_status = None
        self.dataset_results = []

    @property
    def config(self):
        return self.control.config

    @property
    def idle(self):
        return not self.config.machine_on

    def _empty_history(self):
        series = {"labels": deque(maxlen=self.history_window)}
        for name in self.rule_set.history_fields:
            series[name] = deque(maxlen=self.history_window)
        return series

    def _push_history(self, record, label=None):
        self.history["labels"].append(label or format_clock())
        for name in self.rule_set.history_fields:
            self.history[name].append(record.get(name))

    def subject_for(self, record):
        if self.rule_set.subject is None:
            return None
        return render_template(self.rule_set.subject, dict(record.fields))

    def evaluate(self, record):
        """Rules + aggregation only; routing and history are untouched."""
        alerts = self.engine.evaluate(record, self.rule_set)
        return self.aggregator.aggregate(alerts, record)

    def run_cycle(self, record=None):
        """One evaluation cycle. Returns the Status, or None when the cycle did not run."""
        if self.idle:
            logger.debug(f"{self.domain}: machine off, cycle skipped")
            return None
        if record is None:
            if self.mode != MonitorMode.LIVE or self.generator is None:
                return None
            record = self.generator()

        self._push_history(record)
        status = self.evaluate(record)
        self.last_record = record
        self.last_status = status

        logged = self.router.route(status, self.config, subject=self.subject_for(record))
        self._dispatch(logged)
        if status.alerts:
            logger.info(
                f"{self.domain}: {len(status.alerts)} alert(s), overall {status.overall_status.value}, "
                f"router {self.router.state.value}"
            )
        return status

    def _dispatch(self, alerts):
        for alert in alerts:
            for channel in self.channels:
                try:
                    channel.send(alert, self.domain)
                except Exception as e:
                    logger.warning(f"Channel dispatch error: {e}")

    def load_dataset(self, rows):
        """Evaluate uploaded rows and switch to dataset mode. Rows are never routed."""
        records = self.normalizer.normalize_all(rows)
        results = [
            DatasetResult(row=i + 1, record=record, status=self.evaluate(record))
            for i, record in enumerate(records)
        ]
        self.dataset_results = results
        self.set_mode(MonitorMode.DATASET)

        self.history = self._empty_history()
        for r in results:
            self._push_history(r.record, label=f"R{r.row}")

        self.audit_log.log(f"Dataset loaded: {len(results)} rows processed", LogType.MANUAL)
        return results

    def set_mode(self, mode):
        mode = MonitorMode(mode)
        if mode != self.mode:
            logger.info(f"{self.domain}: mode {self.mode.value} -> {mode.value}")
        self.mode = mode

    def approve(self):
        return self.router.approve()

    def reject(self):
        return self.router.reject()

    def dismiss(self):
        return self.router.dismiss()

    def add_note(self, text, tag=None):
        return self.audit_log.add_note(text, tag=tag or self.rule_set.note_tag)

    def add_intervention_note(self, text, author="DOCTOR"):
        text = (text or "").strip()
        if not text:
            return None
        return self.audit_log.log(f"[{author}] Intervention note: {text}", LogType.MANUAL)

    def export_audit(self, timestamp_ms=None):
        return build_export(self.audit_log.all(), self.domain, timestamp_ms=timestamp_ms)

    def summary(self):
        """Display-oriented view of the latest cycle; frozen while the machine is off."""
        status = self.last_status
        return {
            "domain": self.domain,
            "title": self.rule_set.title,
            "mode": self.mode.value,
            "idle": self.idle,
            "overall_status": "idle" if self.idle else (status.overall_status.value if status else "ok"),
            "derived_scores": dict(status.derived_scores) if status else {},
            "alerts": [a.to_dict() for a in status.alerts] if status else [],
            "needs_escalation": status.needs_escalation if status else False,
            "router_state": self.router.state.value,
            "pending": [a.to_dict() for a in self.router.pending],
            "audit_entries": len(self.audit_log),
        }
