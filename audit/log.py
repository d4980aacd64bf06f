"""In-memory, bounded audit log of automatic and manual decisions."""
import logging
from collections import deque

from models.alerts import LogEntry
from models.enums import LogType
from utils.formatters import format_clock

logger = logging.getLogger("cogsync.audit")

DEFAULT_CAPACITY = 100


class AuditLog:
    """Most-recent-first log holding at most `capacity` entries.

    Appending past capacity silently drops the oldest entry.
    """

    def __init__(self, domain="", capacity=DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.domain = domain
        self.capacity = capacity
        self._entries = deque(maxlen=capacity)

    def append(self, entry):
        self._entries.appendleft(entry)
        # Audit text is literal, never rich markup
        logger.debug(f"[{self.domain}] [{entry.type.value}] {entry.msg}", extra={"markup": False})
        return entry

    def log(self, msg, entry_type=LogType.AUTO, time=None):
        return self.append(LogEntry(time=time or format_clock(), msg=msg, type=LogType(entry_type)))

    def add_note(self, text, tag="MANUAL OVERRIDE"):
        """Operator free-text note, independent of any rule evaluation."""
        text = (text or "").strip()
        if not text:
            return None
        return self.log(f"[{tag}] {text}", LogType.MANUAL)

    def all(self):
        return list(self._entries)

    def latest(self):
        return self._entries[0] if self._entries else None

    def export_text(self):
        return "\n".join(e.to_line() for e in self._entries)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
