"""NDJSON encoder for log records."""

import json
from collections.abc import Iterable

from chroniclepy.core.models import LogRecord


def encode_records(records: Iterable[LogRecord]) -> str:
    """Encode log records to newline-delimited JSON.

    Args:
        records: An iterable of LogRecord objects, e.g. a console buffer
            snapshot.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no records.
    """
    lines = []
    for record in records:
        obj = {
            "id": str(record.id),
            "timestamp": record.timestamp,
            "level": record.level.label,
            "subsystem": record.subsystem,
            "category": record.category,
            "tags": [tag.value for tag in record.tags],
            "message": record.message,
            "metadata": record.metadata.to_python() if record.metadata is not None else None,
            "line": record.composed_line,
        }
        lines.append(json.dumps(obj))

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
