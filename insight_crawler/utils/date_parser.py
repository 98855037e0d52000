# utils/date_parser.py

"""
Date normalization for harvested items.

Handles ISO-8601, Korean and English relative expressions ("3일 전",
"3 days ago", "어제", "yesterday") and a battery of fixed numeric and
month-name formats. Unparseable input yields None, which callers treat as
"keep the item".
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}(T|\s)\d{2}:\d{2}")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_KO_SAME_DAY = {"오늘", "방금", "방금 전"}
_KO_RELATIVE = [
    (re.compile(r"(\d+)\s*분\s*전"), "minutes"),
    (re.compile(r"(\d+)\s*시간\s*전"), "hours"),
    (re.compile(r"(\d+)\s*일\s*전"), "days"),
    (re.compile(r"(\d+)\s*주\s*전"), "weeks"),
    (re.compile(r"(\d+)\s*(?:개월|달)\s*전"), "months"),
    (re.compile(r"(\d+)\s*년\s*전"), "years"),
]
_EN_RELATIVE = [
    (re.compile(r"(\d+)\s*minutes?\s*ago"), "minutes"),
    (re.compile(r"(\d+)\s*hours?\s*ago"), "hours"),
    (re.compile(r"(\d+)\s*days?\s*ago"), "days"),
    (re.compile(r"(\d+)\s*weeks?\s*ago"), "weeks"),
    (re.compile(r"(\d+)\s*months?\s*ago"), "months"),
    (re.compile(r"(\d+)\s*years?\s*ago"), "years"),
]

_YMD = re.compile(r"^(\d{4})[.\-/](\d{1,2})[.\-/](\d{1,2})")
_HAS_YEAR = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_DMY = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})")
_SHORT_YMD = re.compile(r"^(\d{2})[.\-/](\d{1,2})[.\-/](\d{1,2})")
_COMPACT = re.compile(r"^(\d{4})(\d{2})(\d{2})")
_KOREAN = re.compile(r"(\d{4})년\s*(\d{1,2})월\s*(\d{1,2})일")
_MONTH_DAY_YEAR = re.compile(r"([a-z]+)\.?\s+(\d{1,2}),?\s*(\d{4})")
_DAY_MONTH_YEAR = re.compile(r"(\d{1,2})\s+([a-z]+)\.?,?\s+(\d{4})")

_MONTHS = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}


def _now(now: Optional[datetime]) -> datetime:
    return _aware(now) if now is not None else datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _shift(now: datetime, unit: str, amount: int) -> datetime:
    if unit in ("months", "years"):
        return now - relativedelta(**{unit: amount})
    return now - timedelta(**{unit: amount})


def _build(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_iso(value: str) -> Optional[datetime]:
    if _ISO_DATETIME.match(value) or _ISO_DATE.match(value):
        try:
            return _aware(date_parser.isoparse(value))
        except ValueError:
            try:
                return _aware(date_parser.parse(value))
            except (ValueError, OverflowError):
                return None
    return None


def _parse_korean_relative(value: str, now: datetime) -> Optional[datetime]:
    if value in _KO_SAME_DAY:
        return now
    if value == "어제":
        return now - timedelta(days=1)
    if value in ("그저께", "그제"):
        return now - timedelta(days=2)
    for pattern, unit in _KO_RELATIVE:
        match = pattern.search(value)
        if match:
            return _shift(now, unit, int(match.group(1)))
    return None


def _parse_english_relative(value: str, now: datetime) -> Optional[datetime]:
    lower = value.lower()
    if lower in ("just now", "now", "today"):
        return now
    if lower == "yesterday":
        return now - timedelta(days=1)
    for pattern, unit in _EN_RELATIVE:
        match = pattern.search(lower)
        if match:
            return _shift(now, unit, int(match.group(1)))
    return None


def _parse_fixed_formats(value: str) -> Optional[datetime]:
    numeric = re.sub(r"[^\d.\-/\s:]", "", value).strip()

    match = _YMD.match(numeric)
    if match:
        year, month, day = (int(part) for part in match.groups())
        result = _build(year, month, day)
        if result:
            return result

    match = _MDY.match(numeric)
    if match:
        month, day, year = (int(part) for part in match.groups())
        result = _build(year, month, day)
        if result:
            return result

    match = _DMY.match(numeric)
    if match:
        day, month, year = (int(part) for part in match.groups())
        result = _build(year, month, day)
        if result:
            return result

    match = _SHORT_YMD.match(numeric)
    if match:
        year, month, day = (int(part) for part in match.groups())
        result = _build(year + 2000, month, day)
        if result:
            return result

    match = _COMPACT.match(numeric)
    if match:
        year, month, day = (int(part) for part in match.groups())
        result = _build(year, month, day)
        if result:
            return result

    match = _KOREAN.search(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        result = _build(year, month, day)
        if result:
            return result

    lower = value.lower()
    match = _MONTH_DAY_YEAR.search(lower)
    if match and match.group(1) in _MONTHS:
        result = _build(int(match.group(3)), _MONTHS[match.group(1)], int(match.group(2)))
        if result:
            return result

    match = _DAY_MONTH_YEAR.search(lower)
    if match and match.group(2) in _MONTHS:
        result = _build(int(match.group(3)), _MONTHS[match.group(2)], int(match.group(1)))
        if result:
            return result

    return None


def _parse_with_dateutil(value: str) -> Optional[datetime]:
    # Without a year dateutil fills in today's, which turns labels like "3" into dates
    if not _HAS_YEAR.search(value):
        return None
    try:
        return _aware(date_parser.parse(value))
    except (ValueError, OverflowError):
        return None


def parse_date(
    value: Optional[str],
    date_format: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Parse a date string into a timezone-aware datetime.

    Args:
        value: Raw date text
        date_format: Optional strptime format tried before the heuristics
        now: Reference time for relative expressions

    Returns:
        Parsed datetime (UTC when the input carries no offset) or None
    """
    if not value:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None

    if date_format:
        try:
            return _aware(datetime.strptime(cleaned, date_format))
        except ValueError:
            pass

    reference = _now(now)
    return (
        _parse_iso(cleaned)
        or _parse_korean_relative(cleaned, reference)
        or _parse_english_relative(cleaned, reference)
        or _parse_fixed_formats(cleaned)
        or _parse_with_dateutil(cleaned)
    )


def is_within_days(
    value: Union[str, datetime, None],
    days: int = 7,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether a date falls inside the last `days` calendar days.

    Missing or unparseable dates and future dates count as recent.
    """
    if not value:
        return True

    reference = _now(now)
    if isinstance(value, datetime):
        parsed = _aware(value)
    else:
        parsed = parse_date(value, now=reference)
        if parsed is None:
            return True

    if parsed > reference:
        return True

    age = reference.date() - parsed.astimezone(reference.tzinfo or timezone.utc).date()
    return age.days <= days


def parse_date_to_iso(
    value: Optional[str],
    date_format: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Parse a date string and return its ISO-8601 form, or None"""
    parsed = parse_date(value, date_format=date_format, now=now)
    return parsed.isoformat() if parsed else None
