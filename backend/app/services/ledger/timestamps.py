"""
Timestamp (de)serialization shared by the text-based ledger backends.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def to_storage(timestamp: datetime) -> str:
    """ISO-8601 in UTC; naive datetimes are taken as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp.

    Returns None for missing or unparsable values so bad historical rows never
    block a user.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        # Postgres/Supabase may return a trailing "Z"
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
