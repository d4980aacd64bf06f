"""File ingestion: parsing uploads and normalizing rows into telemetry records."""
from ingest.parser import parse_file, parse_content, coerce_cell, ALLOWED_EXTENSIONS, MAX_UPLOAD_BYTES
from ingest.normalizer import RecordNormalizer
