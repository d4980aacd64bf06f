"""Map loosely-named input rows onto a domain's telemetry fields."""
import logging
import math

from models.telemetry import TelemetryRecord, is_missing
from utils.formatters import render_template

logger = logging.getLogger("cogsync.ingest.normalizer")

NAN = float("nan")
TRUE_STRINGS = {"true", "1", "yes", "y"}


def _present(value):
    return not is_missing(value) and value != ""


def _to_float(raw):
    if isinstance(raw, bool):
        return float(raw)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return NAN


def _to_int(raw):
    value = _to_float(raw)
    if is_missing(value) or math.isinf(value):
        return value
    return int(value)


def _to_bool(raw):
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    return str(raw).strip().lower() in TRUE_STRINGS


def _to_str(raw):
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


COERCERS = {
    "float": _to_float,
    "int": _to_int,
    "bool": _to_bool,
    "str": _to_str,
}


class RecordNormalizer:
    """Field aliasing, coercion and defaults driven by the rule set's field table.

    Unparseable numbers become NaN, which the rule engine treats as missing.
    """

    def __init__(self, rule_set):
        self.rule_set = rule_set

    def normalize(self, row, index=0, source="upload"):
        """Build a record from one row; `index` is 0-based and feeds `{row}` defaults."""
        if not self.rule_set.fields:
            return TelemetryRecord(domain=self.rule_set.domain, fields=dict(row), source=source)

        fields = {}
        for spec in self.rule_set.fields:
            raw = None
            for key in [spec.name] + spec.aliases:
                if _present(row.get(key)):
                    raw = row[key]
                    break
            if raw is None:
                fields[spec.name] = self._default(spec, index)
                continue
            fields[spec.name] = COERCERS[spec.type](raw)
        return TelemetryRecord(domain=self.rule_set.domain, fields=fields, source=source)

    def normalize_all(self, rows, source="upload"):
        records = [self.normalize(row, i, source=source) for i, row in enumerate(rows)]
        logger.debug(f"{self.rule_set.domain}: normalized {len(records)} row(s)")
        return records

    def _default(self, spec, index):
        default = spec.default
        if isinstance(default, str):
            return render_template(default, {"row": index + 1})
        return default
