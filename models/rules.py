"""Dataclasses describing a domain rule set as loaded from YAML."""
from dataclasses import dataclass, field
from typing import Any, Optional

from models.enums import Action, Severity


@dataclass
class Comparison:
    field: str = ""
    operator: str = ">"
    value: Any = 0


@dataclass
class AllOf:
    conditions: list = field(default_factory=list)


@dataclass
class AnyOf:
    conditions: list = field(default_factory=list)


@dataclass
class Term:
    field: str = ""
    coef: float = 1.0
    offset: float = 0.0
    absolute: bool = False


@dataclass
class Formula:
    """base (or base_field) + sum(coef * f(field + offset)), clamped to [minimum, maximum]."""
    base: float = 0.0
    base_field: Optional[str] = None
    terms: list = field(default_factory=list)
    minimum: float = 0.0
    maximum: float = 100.0
    round_result: bool = False


@dataclass
class SeverityTier:
    condition: Any = None
    severity: Severity = Severity.WARNING


@dataclass
class AlertRule:
    id: str = ""
    name: str = ""
    condition: Any = None
    reason: str = ""
    confidence: Formula = field(default_factory=Formula)
    severity: Severity = Severity.WARNING
    severity_tiers: list = field(default_factory=list)
    action: Action = Action.MONITOR
    action_by_severity: dict = field(default_factory=dict)
    compliance: str = ""
    enabled: bool = True


@dataclass
class ScoreDelta:
    condition: Any = None
    delta: float = 0.0


@dataclass
class DerivedScore:
    name: str = ""
    label: str = ""
    formula: Formula = field(default_factory=Formula)
    deltas: list = field(default_factory=list)


@dataclass
class DerivedField:
    name: str = ""
    kind: str = "abs_diff"
    field: str = ""
    reference: float = 0.0


@dataclass
class FieldSpec:
    name: str = ""
    type: str = "float"
    aliases: list = field(default_factory=list)
    default: Any = 0


@dataclass
class RuleSet:
    domain: str = ""
    title: str = ""
    interval_seconds: float = 2.0
    subject: Optional[str] = None
    note_tag: str = "MANUAL OVERRIDE"
    fields: list = field(default_factory=list)
    derived: list = field(default_factory=list)
    rules: list = field(default_factory=list)
    scores: list = field(default_factory=list)
    history_fields: list = field(default_factory=list)
    whatif_defaults: dict = field(default_factory=dict)

    def get_rule(self, rule_id):
        for r in self.rules:
            if r.id == rule_id:
                return r
        return None

    def enabled_rules(self):
        return [r for r in self.rules if r.enabled]
