"""Bounded audit trail and its text export."""
from audit.log import AuditLog, DEFAULT_CAPACITY
from audit.export import ExportAttachment, build_export, write_export
