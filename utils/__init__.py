"""Utility modules for the monitor."""
from utils.logger import setup_logging
from utils.formatters import render_template, format_confidence, format_value, format_clock
from utils.errors import MonitorError, RuleConfigError, UnknownDomainError, ParseError, UnsupportedFormatError
