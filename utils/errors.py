"""Exception types raised outside the rule evaluation path."""


class MonitorError(Exception):
    """Base error for the monitoring system."""


class RuleConfigError(MonitorError):
    """A domain rule file is missing or malformed."""
    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class UnknownDomainError(MonitorError):
    """No rule set is registered under the requested domain name."""


class ParseError(MonitorError):
    """An uploaded file could not be parsed into rows."""
    def __init__(self, message, filename=None, details=None):
        super().__init__(message)
        self.filename = filename
        self.details = details


class UnsupportedFormatError(MonitorError):
    """An uploaded file has an extension other than the accepted ones."""
    def __init__(self, message, filename=None):
        super().__init__(message)
        self.filename = filename
