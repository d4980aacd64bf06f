"""Alert notification channels for auto-logged alerts."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from models.enums import Severity

logger = logging.getLogger("cogsync.alerts.channels")

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold white on red",
    Severity.DANGER: "bold red",
    Severity.WARNING: "bold yellow",
    Severity.INFO: "bold blue",
}


@runtime_checkable
class AlertChannel(Protocol):
    def send(self, alert, domain="") -> None: ...


class ConsoleChannel:
    """Print alerts to terminal with rich formatting."""

    def __init__(self, console=None):
        from rich.console import Console
        self.console = console or Console()

    def send(self, alert, domain=""):
        from rich.markup import escape
        style = SEVERITY_STYLES.get(alert.severity, "bold")
        label = escape(f"[{alert.severity.value.upper()}]")
        self.console.print(f"[{style}]{label} {domain} {alert.action.value}: {escape(alert.rule)}[/] - {escape(alert.reason)}")


class FileChannel:
    """Append alerts to a JSON lines log file."""

    def __init__(self, log_path="data/alerts.jsonl"):
        self.log_path = Path(log_path)

    def send(self, alert, domain=""):
        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), "domain": domain}
        entry.update(alert.to_dict())
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write alert to file: {e}")
