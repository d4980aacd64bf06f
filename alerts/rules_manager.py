"""Domain rule set loading and management."""
import logging
from pathlib import Path

import yaml

from alerts.engine import OPERATOR_MAP
from models.enums import Action, Severity
from models.rules import (
    AllOf, AlertRule, AnyOf, Comparison, DerivedField, DerivedScore, FieldSpec,
    Formula, RuleSet, ScoreDelta, SeverityTier, Term,
)
from utils.errors import RuleConfigError, UnknownDomainError

logger = logging.getLogger("cogsync.alerts.rules")

DEFAULT_DOMAINS_DIR = Path(__file__).parent.parent / "config" / "domains"
VALID_FIELD_TYPES = {"float", "int", "bool", "str"}
VALID_DERIVED_KINDS = {"abs_diff", "diff"}


def parse_condition(raw):
    """Parse `[field, op, value]`, `{field, op, value}`, `{all: [...]}` or `{any: [...]}`."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        if len(raw) != 3:
            raise RuleConfigError(f"Comparison must be [field, op, value], got {raw!r}")
        field, op, value = raw
        return _comparison(field, op, value)
    if isinstance(raw, dict):
        if "all" in raw:
            return AllOf([parse_condition(c) for c in raw["all"]])
        if "any" in raw:
            return AnyOf([parse_condition(c) for c in raw["any"]])
        if "field" in raw:
            return _comparison(raw["field"], raw.get("op", ">"), raw.get("value"))
    raise RuleConfigError(f"Unrecognized condition: {raw!r}")


def _comparison(field, op, value):
    if op not in OPERATOR_MAP:
        raise RuleConfigError(f"Invalid operator {op!r} on field {field!r}")
    return Comparison(field=str(field), operator=op, value=value)


def parse_formula(raw, round_result=False):
    """A bare number is a constant; a mapping gives base/terms/bounds."""
    if raw is None:
        return Formula(round_result=round_result)
    if isinstance(raw, (int, float)):
        return Formula(base=float(raw), round_result=round_result)
    terms = [
        Term(
            field=t["field"],
            coef=float(t.get("coef", 1.0)),
            offset=float(t.get("offset", 0.0)),
            absolute=bool(t.get("abs", False)),
        )
        for t in raw.get("terms", [])
    ]
    return Formula(
        base=float(raw.get("base", 0.0)),
        base_field=raw.get("base_field"),
        terms=terms,
        minimum=float(raw.get("min", 0.0)),
        maximum=float(raw.get("max", 100.0)),
        round_result=bool(raw.get("round", round_result)),
    )


class RulesManager:
    """Loads one domain YAML file into a RuleSet."""

    def __init__(self, rules_path):
        self.rules_path = Path(rules_path)
        self.rule_set = None
        self.load()

    def load(self):
        if not self.rules_path.exists():
            raise RuleConfigError(f"Domain rules file not found: {self.rules_path}", path=self.rules_path)
        try:
            with open(self.rules_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuleConfigError(f"Invalid YAML in {self.rules_path}: {e}", path=self.rules_path) from e

        domain = data.get("domain") or self.rules_path.stem
        interval = float(data.get("interval_seconds", 2.0))
        if not 0.5 <= interval <= 60:
            raise RuleConfigError(f"{domain}: interval_seconds must be between 0.5 and 60", path=self.rules_path)

        self.rule_set = RuleSet(
            domain=domain,
            title=data.get("title", domain.title()),
            interval_seconds=interval,
            subject=data.get("subject"),
            note_tag=data.get("note_tag", "MANUAL OVERRIDE"),
            fields=self._parse_fields(data.get("fields", {})),
            derived=self._parse_derived(data.get("derived", [])),
            rules=self._parse_rules(data.get("rules", [])),
            scores=self._parse_scores(data.get("scores", [])),
            history_fields=list(data.get("history", [])),
            whatif_defaults=dict(data.get("whatif", {})),
        )
        logger.info(f"Loaded {domain}: {len(self.rule_set.rules)} rules, {len(self.rule_set.scores)} scores")
        return self.rule_set

    def _parse_fields(self, raw_fields):
        fields = []
        for name, spec in raw_fields.items():
            spec = spec or {}
            ftype = spec.get("type", "float")
            if ftype not in VALID_FIELD_TYPES:
                raise RuleConfigError(f"Field {name}: unknown type {ftype!r}", path=self.rules_path)
            fields.append(FieldSpec(
                name=name,
                type=ftype,
                aliases=list(spec.get("aliases", [])),
                default=spec.get("default", 0),
            ))
        return fields

    def _parse_derived(self, raw_derived):
        derived = []
        for d in raw_derived:
            kind = d.get("kind", "abs_diff")
            if kind not in VALID_DERIVED_KINDS:
                raise RuleConfigError(f"Derived field {d.get('name')}: unknown kind {kind!r}", path=self.rules_path)
            derived.append(DerivedField(
                name=d["name"], kind=kind, field=d["field"], reference=float(d.get("reference", 0.0)),
            ))
        return derived

    def _parse_rules(self, raw_rules):
        rules = []
        seen = set()
        for r in raw_rules:
            try:
                rule = self._parse_rule(r)
            except (RuleConfigError, KeyError, ValueError) as e:
                logger.warning(f"Skipping invalid rule {r.get('id')}: {e}")
                continue
            if rule.id in seen:
                logger.warning(f"Duplicate rule id {rule.id}, keeping the first")
                continue
            seen.add(rule.id)
            rules.append(rule)
        return rules

    def _parse_rule(self, r):
        severity_raw = r.get("severity", "warning")
        if isinstance(severity_raw, dict):
            default_severity = Severity(severity_raw.get("default", "warning"))
            tiers = [
                SeverityTier(condition=parse_condition(t["when"]), severity=Severity(t["severity"]))
                for t in severity_raw.get("tiers", [])
            ]
        else:
            default_severity = Severity(severity_raw)
            tiers = []

        if default_severity is Severity.OK or any(t.severity is Severity.OK for t in tiers):
            raise ValueError("'ok' marks the absence of alerts and cannot be a rule severity")

        return AlertRule(
            id=r["id"],
            name=r.get("name", r["id"]),
            condition=parse_condition(r.get("when")),
            reason=r.get("reason", ""),
            confidence=parse_formula(r.get("confidence")),
            severity=default_severity,
            severity_tiers=tiers,
            action=Action(r.get("action", "MONITOR")),
            action_by_severity={
                Severity(k): Action(v) for k, v in (r.get("action_by_severity") or {}).items()
            },
            compliance=r.get("compliance", ""),
            enabled=r.get("enabled", True),
        )

    def _parse_scores(self, raw_scores):
        scores = []
        for s in raw_scores:
            formula = parse_formula(s, round_result=True)
            deltas = [
                ScoreDelta(condition=parse_condition(d["when"]), delta=float(d["delta"]))
                for d in s.get("deltas", [])
            ]
            scores.append(DerivedScore(
                name=s["name"], label=s.get("label", s["name"]), formula=formula, deltas=deltas,
            ))
        return scores

    def get_all_rules(self):
        return self.rule_set.rules

    def get_enabled_rules(self):
        return self.rule_set.enabled_rules()

    def get_rule(self, rule_id):
        return self.rule_set.get_rule(rule_id)


class DomainRegistry:
    """All domain rule sets found in a directory, keyed by domain name."""

    def __init__(self, domains_dir=None):
        self.domains_dir = Path(domains_dir) if domains_dir else DEFAULT_DOMAINS_DIR
        self._rule_sets = {}
        self.load()

    def load(self):
        if not self.domains_dir.is_dir():
            raise RuleConfigError(f"Domains directory not found: {self.domains_dir}", path=self.domains_dir)
        self._rule_sets = {}
        for path in sorted(self.domains_dir.glob("*.yaml")):
            rule_set = RulesManager(path).rule_set
            self._rule_sets[rule_set.domain] = rule_set
        logger.info(f"Loaded {len(self._rule_sets)} domain(s) from {self.domains_dir}")

    def get(self, domain):
        try:
            return self._rule_sets[domain]
        except KeyError:
            known = ", ".join(self.names()) or "none"
            raise UnknownDomainError(f"Unknown domain {domain!r} (known: {known})") from None

    def names(self):
        return list(self._rule_sets)

    def __iter__(self):
        return iter(self._rule_sets.values())

    def __len__(self):
        return len(self._rule_sets)
