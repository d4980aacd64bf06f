"""Dataclasses for alerts, statuses, audit entries and operator toggles."""
from dataclasses import dataclass, field
from typing import Optional

from models.enums import Action, LogType, Severity


@dataclass(frozen=True)
class Alert:
    rule: str = ""
    reason: str = ""
    confidence: float = 0.0
    severity: Severity = Severity.WARNING
    action: Action = Action.MONITOR
    compliance: str = ""
    rule_id: str = ""

    def to_dict(self):
        return {
            "rule": self.rule,
            "reason": self.reason,
            "confidence": self.confidence,
            "severity": self.severity.value,
            "action": self.action.value,
            "compliance": self.compliance,
        }


@dataclass
class Status:
    alerts: list = field(default_factory=list)
    overall_status: Severity = Severity.OK
    derived_scores: dict = field(default_factory=dict)
    needs_escalation: bool = False

    @property
    def escalation_alerts(self):
        return [a for a in self.alerts if a.action == Action.ESCALATE]


@dataclass(frozen=True)
class LogEntry:
    time: str = ""
    msg: str = ""
    type: LogType = LogType.AUTO

    def to_line(self):
        return f"[{self.time}] [{self.type.value}] {self.msg}"


@dataclass
class AutomationConfig:
    machine_on: bool = True
    automation_on: bool = True


@dataclass
class DatasetResult:
    row: int = 0
    record: Optional[object] = None
    status: Optional[Status] = None
