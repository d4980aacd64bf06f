"""Telemetry record passed through one evaluation cycle."""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class TelemetryRecord:
    domain: str = ""
    fields: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "live"

    def __post_init__(self):
        # Freeze the caller's dict so a record cannot change after evaluation
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def get(self, name, default=None):
        return self.fields.get(name, default)

    def __getitem__(self, name):
        return self.fields[name]

    def __contains__(self, name):
        return name in self.fields

    def to_dict(self):
        d = dict(self.fields)
        d["timestamp"] = self.timestamp.isoformat()
        d["source"] = self.source
        return d


def is_missing(value):
    """True for absent, None or NaN values."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False
