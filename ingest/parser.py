"""CSV / JSON upload parsing.

Produces a list of row dicts (string key -> str / number / bool / None).
Any failure raises before a single row is returned, so callers never see a
partially parsed file.
"""
import csv
import io
import json
import logging
from pathlib import Path

from utils.errors import ParseError, UnsupportedFormatError

logger = logging.getLogger("cogsync.ingest.parser")

ALLOWED_EXTENSIONS = {".csv", ".json"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def parse_file(path, max_bytes=MAX_UPLOAD_BYTES, allowed_extensions=None):
    path = Path(path)
    allowed = set(allowed_extensions or ALLOWED_EXTENSIONS)
    ext = path.suffix.lower()
    if ext not in allowed:
        raise UnsupportedFormatError(
            f"Only {', '.join(sorted(allowed))} files are allowed (got {path.name})", filename=path.name,
        )
    if not path.exists():
        raise ParseError(f"File not found: {path}", filename=path.name)

    size = path.stat().st_size
    if size > max_bytes:
        raise ParseError(f"{path.name} is {size} bytes, limit is {max_bytes}", filename=path.name)

    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError("Failed to read file", filename=path.name, details=str(e)) from e

    rows = parse_content(content, path.name, allowed_extensions=allowed)
    logger.info(f"Parsed {len(rows)} row(s) from {path.name}")
    return rows


def parse_content(content, filename, allowed_extensions=None):
    """Parse already-read text, dispatching on the filename's extension."""
    allowed = set(allowed_extensions or ALLOWED_EXTENSIONS)
    ext = Path(filename).suffix.lower()
    if ext not in allowed:
        raise UnsupportedFormatError(f"Unsupported file type: {filename}", filename=filename)
    if ext == ".json":
        return _parse_json(content, filename)
    return _parse_csv(content, filename)


def _parse_json(content, filename):
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError("Invalid JSON file", filename=filename, details=str(e)) from e
    if not isinstance(data, list):
        data = [data]
    for i, row in enumerate(data):
        if not isinstance(row, dict):
            raise ParseError(f"Row {i + 1} is not an object", filename=filename)
    return data


def _parse_csv(content, filename):
    if not content.strip():
        raise ParseError("Empty CSV file", filename=filename)
    try:
        reader = csv.DictReader(io.StringIO(content.strip()), skipinitialspace=True)
        if not reader.fieldnames:
            raise ParseError("CSV file has no header row", filename=filename)
        rows = []
        for row in reader:
            if None in row:
                raise ParseError(f"Line {reader.line_num} has more values than headers", filename=filename)
            rows.append({k.strip(): coerce_cell(v) for k, v in row.items()})
    except csv.Error as e:
        raise ParseError("Error parsing CSV", filename=filename, details=str(e)) from e
    return rows


def coerce_cell(value):
    """Dynamic typing for CSV cells: numbers and booleans become native values."""
    if value is None:
        return None
    value = value.strip()
    if value == "":
        return None
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value
