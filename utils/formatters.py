"""Formatting utilities for display and alert text."""
import math
import string
from datetime import datetime

from models.telemetry import is_missing


class _LenientFormatter(string.Formatter):
    """str.format that renders missing or ill-typed values instead of raising."""

    def get_value(self, key, args, kwargs):
        if isinstance(key, int):
            return args[key] if key < len(args) else None
        return kwargs.get(key)

    def format_field(self, value, format_spec):
        if is_missing(value):
            return "N/A"
        try:
            return super().format_field(value, format_spec)
        except (TypeError, ValueError):
            return str(value)


_formatter = _LenientFormatter()


def render_template(template, context):
    """Render a `{field:spec}` template against a context dict. Never raises."""
    if not template:
        return ""
    try:
        return _formatter.vformat(template, (), context)
    except (ValueError, IndexError, AttributeError):
        return template


def format_confidence(value):
    """Format a 0-100 confidence as a percentage."""
    if is_missing(value):
        return "N/A"
    value = float(value)
    if value == int(value):
        return f"{int(value)}%"
    return f"{value:.1f}%"


def format_value(value, decimals=1):
    """Format a telemetry field for tables: numbers compact, bools as yes/no."""
    if is_missing(value):
        return "N/A"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        if math.isfinite(value) and value == int(value) and abs(value) < 1e15:
            return f"{int(value):,}"
        return f"{value:,.{decimals}f}"
    return str(value)


def format_clock(ts=None):
    """24h wall-clock time used for audit entries, e.g. '14:03:27'."""
    ts = ts or datetime.now()
    return ts.strftime("%H:%M:%S")
