"""Date normalization helpers."""

from datetime import date, datetime
from typing import Any


def normalize_date(value: Any) -> Any:
    """Normalize a date-like value to ``YYYY-MM-DD``.

    Missing or empty values are returned untouched so that callers can
    distinguish "not provided" from a real date.

    Args:
        value: ``date``, ``datetime``, ISO string (optionally with a time part)
            or an empty value

    Returns:
        ISO calendar date string, or the original value when empty

    Raises:
        ValueError: If a non-empty string is not an ISO date
    """
    if value is None or value == "":
        return value
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if "T" in text:
            text = text.split("T", 1)[0]
        elif " " in text:
            text = text.split(" ", 1)[0]
        return date.fromisoformat(text).isoformat()
    raise ValueError(f"Unsupported date value of type {type(value).__name__}")


def normalize_date_fields(record: dict[str, Any], date_fields: tuple[str, ...]) -> dict[str, Any]:
    """Return a copy of ``record`` with every declared date field normalized."""
    normalized = dict(record)
    for field in date_fields:
        if field in normalized:
            normalized[field] = normalize_date(normalized[field])
    return normalized


def format_us_date(value: date) -> str:
    """Format a date as ``MM/DD/YYYY`` for US paper forms."""
    return value.strftime("%m/%d/%Y")
