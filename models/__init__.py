"""Data models."""
from models.enums import Severity, Action, RouterState, Command, LogType, MonitorMode
from models.telemetry import TelemetryRecord
from models.alerts import Alert, Status, LogEntry, AutomationConfig, DatasetResult
from models.rules import (
    Comparison, AllOf, AnyOf, Term, Formula, SeverityTier, AlertRule,
    ScoreDelta, DerivedScore, DerivedField, FieldSpec, RuleSet,
)
