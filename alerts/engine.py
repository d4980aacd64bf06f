"""Rule evaluation engine."""
import logging
import math

from models.alerts import Alert
from models.enums import Severity
from models.rules import AllOf, AnyOf, Comparison
from models.telemetry import is_missing
from utils.formatters import render_template

logger = logging.getLogger("cogsync.alerts.engine")

OPERATOR_MAP = {
    "<": lambda v, t: v < t,
    ">": lambda v, t: v > t,
    "<=": lambda v, t: v <= t,
    ">=": lambda v, t: v >= t,
    "==": lambda v, t: v == t,
    "!=": lambda v, t: v != t,
}

# Context keys filled by the engine, not by the record
ALERT_COUNT = "alert_count"
ALERT_NAMES = "alert_names"


def _evaluate_condition(value, operator, threshold):
    if is_missing(value):
        return False
    func = OPERATOR_MAP.get(operator)
    if func is None:
        return False
    try:
        return bool(func(value, threshold))
    except TypeError:
        # e.g. a string field compared with a number
        return False


def match_condition(condition, context):
    """Evaluate a Comparison / AllOf / AnyOf tree against a context dict."""
    if condition is None:
        return True
    if isinstance(condition, Comparison):
        return _evaluate_condition(context.get(condition.field), condition.operator, condition.value)
    if isinstance(condition, AllOf):
        return all(match_condition(c, context) for c in condition.conditions)
    if isinstance(condition, AnyOf):
        return any(match_condition(c, context) for c in condition.conditions)
    logger.debug(f"Unknown condition type: {type(condition).__name__}")
    return False


def _numeric(value):
    if is_missing(value) or isinstance(value, str):
        return None
    return float(value)


def evaluate_formula(formula, context, extra=0.0):
    """Compute base + terms (+ extra), clamped to the formula bounds and to [0, 100]."""
    base = formula.base
    if formula.base_field:
        # Baseline fields behave like `field or default`: missing and zero fall back
        field_value = _numeric(context.get(formula.base_field))
        if field_value:
            base = field_value

    total = base + extra
    for term in formula.terms:
        value = _numeric(context.get(term.field))
        if value is None:
            continue
        shifted = value + term.offset
        if term.absolute:
            shifted = abs(shifted)
        total += term.coef * shifted

    total = max(formula.minimum, min(formula.maximum, total))
    total = max(0.0, min(100.0, total))
    if formula.round_result:
        # Halves round up
        return int(math.floor(total + 0.5))
    return round(total, 2)


def compute_derived_fields(record, rule_set):
    """Compute the rule set's derived fields (e.g. absolute deviation from a target)."""
    derived = {}
    for d in rule_set.derived:
        value = _numeric(record.get(d.field))
        if value is None:
            derived[d.name] = None
            continue
        diff = value - d.reference
        derived[d.name] = abs(diff) if d.kind == "abs_diff" else diff
    return derived


def build_context(record, rule_set, alerts=None):
    context = dict(record.fields)
    context.update(compute_derived_fields(record, rule_set))
    alerts = alerts or []
    context[ALERT_COUNT] = len(alerts)
    context[ALERT_NAMES] = ", ".join(a.rule for a in alerts)
    return context


class RuleEngine:
    """Evaluates a RuleSet against one record.

    Pure: the same record and rule set always produce the same ordered alerts.
    Rules run in declaration order and each sees the alerts fired before it
    through `alert_count` / `alert_names`, which is how compound rules work.
    """

    def evaluate(self, record, rule_set):
        alerts = []
        base_context = build_context(record, rule_set)

        for rule in rule_set.enabled_rules():
            context = dict(base_context)
            context[ALERT_COUNT] = len(alerts)
            context[ALERT_NAMES] = ", ".join(a.rule for a in alerts)

            if not match_condition(rule.condition, context):
                continue

            severity = self._resolve_severity(rule, context)
            action = rule.action_by_severity.get(severity, rule.action)
            alerts.append(Alert(
                rule=rule.name,
                reason=render_template(rule.reason, context),
                confidence=evaluate_formula(rule.confidence, context),
                severity=severity,
                action=action,
                compliance=rule.compliance,
                rule_id=rule.id,
            ))

        if alerts:
            logger.debug(f"{rule_set.domain}: {len(alerts)} rule(s) fired")
        return alerts

    def _resolve_severity(self, rule, context):
        for tier in rule.severity_tiers:
            if match_condition(tier.condition, context):
                return tier.severity
        return rule.severity

    def test_rules(self, record, rule_set):
        """Report every rule's outcome for a record, for inspection tables."""
        fired = {a.rule_id: a for a in self.evaluate(record, rule_set)}
        results = []
        for rule in rule_set.rules:
            alert = fired.get(rule.id)
            results.append({
                "rule_id": rule.id,
                "name": rule.name,
                "would_fire": alert is not None,
                "severity": alert.severity.value if alert else None,
                "confidence": alert.confidence if alert else None,
                "action": alert.action.value if alert else rule.action.value,
                "enabled": rule.enabled,
            })
        return results

    def format_alert_summary(self, alerts):
        """Format alerts for display."""
        if not alerts:
            return "All clear - no alerts triggered."
        lines = []
        for a in alerts:
            icon = {
                Severity.CRITICAL: "!!!", Severity.DANGER: "!!",
                Severity.WARNING: "!", Severity.INFO: "i",
            }.get(a.severity, "?")
            lines.append(f"[{icon}] [{a.severity.value.upper()}] {a.rule}: {a.reason}")
        return "\n".join(lines)
