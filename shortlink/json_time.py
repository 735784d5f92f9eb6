"""JSON and database conversions for timestamps in ``YYYY-MM-DD HH:MM:SS`` form."""

from __future__ import annotations

import json
import re
from datetime import datetime

from shortlink.errors import new_request_error

__all__ = ["TIME_FORMAT", "ZERO_TIME", "marshal_json_time", "unmarshal_json_time", "scan_json_time"]

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ZERO_TIME = datetime(1, 1, 1)

_QUOTED_TIME = re.compile(r'"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})"')


def marshal_json_time(value: datetime) -> str:
    """Encode a timestamp as a JSON string."""
    return json.dumps(value.strftime(TIME_FORMAT))


def unmarshal_json_time(data: str | bytes) -> datetime:
    """Decode a JSON string; an empty string gives ``ZERO_TIME``."""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    if data == '""':
        return ZERO_TIME
    match = _QUOTED_TIME.fullmatch(data)
    if match is None:
        raise new_request_error("invalid time format")
    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        raise new_request_error("invalid time format") from None


def scan_json_time(value: object) -> datetime:
    """Convert a database value; ``None`` gives ``ZERO_TIME``."""
    if value is None:
        return ZERO_TIME
    if isinstance(value, datetime):
        return value
    raise new_request_error("invalid time format")