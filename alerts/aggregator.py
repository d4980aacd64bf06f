"""Reduce an alert list to an overall status and domain scores."""
import logging

from alerts.engine import build_context, evaluate_formula, match_condition
from models.alerts import Status
from models.enums import Action, Severity

logger = logging.getLogger("cogsync.alerts.aggregator")


def overall_severity(alerts):
    """Highest aggregation rank among alerts, OK when there are none.

    INFO alerts rank as WARNING, so the result is one of OK, WARNING,
    DANGER or CRITICAL.
    """
    if not alerts:
        return Severity.OK
    top = max(alerts, key=lambda a: a.severity.aggregation_rank).severity
    if top is Severity.INFO:
        return Severity.WARNING
    return top


class StatusAggregator:
    def __init__(self, rule_set):
        self.rule_set = rule_set

    def compute_scores(self, record):
        """Baseline-plus-deltas and linear scores declared by the rule set."""
        context = build_context(record, self.rule_set)
        scores = {}
        for score in self.rule_set.scores:
            extra = sum(d.delta for d in score.deltas if match_condition(d.condition, context))
            scores[score.name] = evaluate_formula(score.formula, context, extra=extra)
        return scores

    def aggregate(self, alerts, record):
        return Status(
            alerts=list(alerts),
            overall_status=overall_severity(alerts),
            derived_scores=self.compute_scores(record),
            needs_escalation=any(a.action == Action.ESCALATE for a in alerts),
        )
