"""Plain-text audit export attachments."""
import logging
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("cogsync.audit.export")


@dataclass(frozen=True)
class ExportAttachment:
    filename: str
    content: str
    content_type: str = "text/plain"


def build_export(entries, domain, timestamp_ms=None):
    """Attachment named `{domain}_audit_{epoch_ms}.txt`, one `[time] [type] msg` line per entry."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    content = "\n".join(e.to_line() for e in entries)
    return ExportAttachment(filename=f"{domain}_audit_{timestamp_ms}.txt", content=content)


def write_export(attachment, directory="."):
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / attachment.filename
    path.write_text(attachment.content + ("\n" if attachment.content else ""), encoding="utf-8")
    logger.info(f"Audit export written: {path}")
    return path
