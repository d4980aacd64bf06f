"""Enums for severity, actions, router states and log entry types."""
from enum import Enum


class Severity(str, Enum):
    INFO = "info"
    OK = "ok"
    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"

    @property
    def rank(self):
        """Position in the declared total order (info < ok < warning < danger < critical)."""
        return _SEVERITY_ORDER.index(self)

    @property
    def aggregation_rank(self):
        """Rank used when reducing alerts to an overall status.

        An INFO alert still means something fired, so it ranks as WARNING.
        """
        if self is Severity.INFO:
            return Severity.WARNING.rank
        return self.rank


_SEVERITY_ORDER = [Severity.INFO, Severity.OK, Severity.WARNING, Severity.DANGER, Severity.CRITICAL]


class Action(str, Enum):
    MONITOR = "MONITOR"
    FLAG = "FLAG"
    ALERT = "ALERT"
    CRITICAL = "CRITICAL"
    MAINTENANCE = "MAINTENANCE"
    RECALCULATE = "RECALCULATE"
    HUMAN_REVIEW = "HUMAN_REVIEW"
    BLOCK = "BLOCK"
    REJECT = "REJECT"
    STOP_SHIPMENT = "STOP_SHIPMENT"
    EMERGENCY = "EMERGENCY"
    ESCALATE = "ESCALATE"
    AMPLIFY_RESPONSE = "AMPLIFY_RESPONSE"
    ISSUE_ALERT = "ISSUE_ALERT"
    HIGH_ALERT = "HIGH_ALERT"


class RouterState(str, Enum):
    MONITORING = "Monitoring"
    AWAITING_APPROVAL = "AwaitingApproval"
    AWAITING_ESCALATION_APPROVAL = "AwaitingEscalationApproval"


class Command(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DISMISS = "dismiss"


class LogType(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    ALERT = "alert"


class MonitorMode(str, Enum):
    LIVE = "live"
    DATASET = "dataset"
