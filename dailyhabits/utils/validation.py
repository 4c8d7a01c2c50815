"""
Validation utilities for request parameters
"""
import re
from datetime import date

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_iso_date(value: str) -> tuple[bool, str | None]:
    """
    Validate a calendar date in YYYY-MM-DD form

    Returns:
        (is_valid, error_message)

    Example:
        >>> validate_iso_date("2024-01-15")
        (True, None)
        >>> validate_iso_date("2024-02-30")
        (False, "Invalid date: 2024-02-30")
    """
    if not _ISO_DATE_RE.match(value or ""):
        return False, "Date must be in YYYY-MM-DD format"
    try:
        date.fromisoformat(value)
    except ValueError:
        return False, f"Invalid date: {value}"
    return True, None


def parse_iso_date(value: str | None) -> date | None:
    """
    Parse an optional YYYY-MM-DD string (raise exception on bad input)

    Raises:
        ValueError: if the string is not a valid date

    Example:
        >>> parse_iso_date("2024-01-15")
        datetime.date(2024, 1, 15)
        >>> parse_iso_date(None) is None
        True
    """
    if value is None or value == "":
        return None
    is_valid, error = validate_iso_date(value)
    if not is_valid:
        raise ValueError(error)
    return date.fromisoformat(value)


def parse_id_list(value: str | None) -> list[int]:
    """
    "3,1,3" -> [3, 1]: comma-separated ids, order kept, duplicates and
    non-numeric parts dropped
    """
    if not value:
        return []
    ids: list[int] = []
    for part in value.split(","):
        part = part.strip()
        if part.isdigit() and int(part) not in ids:
            ids.append(int(part))
    return ids
