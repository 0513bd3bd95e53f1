"""
Date helpers for task tokens.

All dates in the document are ISO 8601 calendar dates (YYYY-MM-DD). parse_date
accepts friendlier input from API callers and normalises it.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def today_iso() -> str:
    """Today's local date as YYYY-MM-DD."""
    return date.today().isoformat()


def is_iso_date(value: Optional[str]) -> bool:
    """True if value is a real YYYY-MM-DD date."""
    if not value or not _ISO_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_date(date_str: str, today: Optional[date] = None) -> Optional[str]:
    """
    Parse various date formats into ISO 8601 (YYYY-MM-DD).

    Supports:
    - ISO 8601: "2026-02-15"
    - Natural language: "today", "tomorrow", "yesterday", "Friday", "next Monday"
    - Relative: "in 3 days", "in 2 weeks"
    - Prose prefixes: "by Friday", "due Friday", "on March 15"

    Returns:
        ISO 8601 date string or None if unparseable
    """
    if not date_str:
        return None

    date_str = date_str.strip()
    today = today or date.today()
    lowered = date_str.lower()

    if lowered in ("today", "now"):
        return today.isoformat()
    if lowered == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    if lowered == "yesterday":
        return (today - timedelta(days=1)).isoformat()

    for prefix in ("before ", "by ", "due ", "on "):
        if lowered.startswith(prefix):
            date_str = date_str[len(prefix):].strip()
            lowered = date_str.lower()

    if is_iso_date(date_str):
        return date_str

    for fmt in ("%B %d, %Y", "%b %d, %Y", "%B %d", "%b %d", "%m/%d/%Y", "%m/%d"):
        try:
            parsed = datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
        if "%Y" not in fmt:
            parsed = parsed.replace(year=today.year)
            if parsed < today:
                parsed = parsed.replace(year=today.year + 1)
        return parsed.isoformat()

    is_next = lowered.startswith("next ")
    if is_next:
        lowered = lowered[5:].strip()

    if lowered in _DAY_NAMES:
        days_ahead = _DAY_NAMES.index(lowered) - today.weekday()
        if days_ahead <= 0 or is_next:
            days_ahead += 7
        return (today + timedelta(days=days_ahead)).isoformat()

    relative = re.match(r"^in (\d+) (days?|weeks?)$", lowered)
    if relative:
        amount = int(relative.group(1))
        unit = relative.group(2)
        delta = timedelta(weeks=amount) if unit.startswith("week") else timedelta(days=amount)
        return (today + delta).isoformat()

    return None
