"""What-if exploration of hypothetical records.

Only the rule engine (and, for previews, the score computation) is touched:
no audit entries, no router transitions, no history updates.
"""
import logging

from alerts.aggregator import StatusAggregator
from alerts.engine import RuleEngine
from models.telemetry import TelemetryRecord

logger = logging.getLogger("cogsync.alerts.whatif")


class WhatIfEvaluator:
    def __init__(self, rule_set, engine=None):
        self.rule_set = rule_set
        self.engine = engine or RuleEngine()
        self.params = dict(rule_set.whatif_defaults)

    def _as_record(self, hypothetical):
        if isinstance(hypothetical, TelemetryRecord):
            return hypothetical
        return TelemetryRecord(domain=self.rule_set.domain, fields=dict(hypothetical), source="whatif")

    def simulate(self, hypothetical=None):
        """Alerts the rule set would raise for the hypothetical (default: current params)."""
        record = self._as_record(self.params if hypothetical is None else hypothetical)
        return self.engine.evaluate(record, self.rule_set)

    def preview(self, hypothetical=None):
        """Alerts plus derived scores; the status is never routed anywhere."""
        record = self._as_record(self.params if hypothetical is None else hypothetical)
        alerts = self.engine.evaluate(record, self.rule_set)
        return StatusAggregator(self.rule_set).aggregate(alerts, record)

    def adjust(self, key, value):
        """Move one slider and return the resulting alerts."""
        self.params[key] = value
        logger.debug(f"{self.rule_set.domain} what-if: {key}={value}")
        return self.simulate()

    def reset(self):
        self.params = dict(self.rule_set.whatif_defaults)
