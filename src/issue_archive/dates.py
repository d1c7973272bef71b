from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Final

_MONTHS: Final[tuple[str, ...]] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_WEEKDAYS: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_MONTH_NAMES: Final[tuple[str, ...]] = tuple(name.lower() for name in _MONTHS)

_MONTH_ABBREVIATIONS: Final[tuple[tuple[str, str], ...]] = (
    ("sept", "september"),
    ("sep", "september"),
    ("jan", "january"),
    ("feb", "february"),
    ("mar", "march"),
    ("apr", "april"),
    ("jun", "june"),
    ("jul", "july"),
    ("aug", "august"),
    ("oct", "october"),
    ("nov", "november"),
    ("dec", "december"),
)

_ABBREVIATION_PATTERNS: Final[tuple[tuple[re.Pattern[str], str], ...]] = tuple(
    (re.compile(rf"\b{abbr}\b\.?"), full) for abbr, full in _MONTH_ABBREVIATIONS
)

_DATE_PHRASE = re.compile(
    r"\b("
    + "|".join(_MONTH_NAMES)
    + r")\s+(\d{1,2})(?:st|nd|rd|th)?(?:,\s*|\s+)(\d{4})\b"
)

_ISO_DATE = re.compile(r"(?<!\d)(\d{4})[-_./](\d{1,2})[-_./](\d{1,2})(?!\d)")


def _iso_or_none(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_phrase(text: str) -> str:
    """Normalize free text so month/day/year phrases look alike.

    Separators (``_``, ``-``, non-breaking spaces) become plain spaces, case
    is folded and month abbreviations are expanded to full names.
    """

    text = text.replace("\u00a0", " ")
    text = re.sub(r"[_-]+", " ", text)
    text = re.sub(r"\s+", " ", text).strip().lower()
    for pattern, full in _ABBREVIATION_PATTERNS:
        text = pattern.sub(full, text)
    return text


def parse_date_phrase(text: str | None) -> str | None:
    """Find ``<month> <day>[suffix][,] <year>`` in text; return ``YYYY-MM-DD``."""

    if not text:
        return None
    m = _DATE_PHRASE.search(normalize_phrase(text))
    if not m:
        return None
    month_name, day, year = m.groups()
    month = _MONTH_NAMES.index(month_name) + 1
    return _iso_or_none(int(year), month, int(day))


def parse_iso_date(text: str | None) -> str | None:
    if not text:
        return None
    m = _ISO_DATE.search(text)
    if not m:
        return None
    year, month, day = (int(part) for part in m.groups())
    return _iso_or_none(year, month, day)


def recognize_date(text: str | None) -> str | None:
    return parse_iso_date(text) or parse_date_phrase(text)


def normalize_date_value(value: str | None) -> str | None:
    """Normalize a machine-provided date (``datetime``/``content`` attribute).

    Full timestamps are cut to their calendar date; anything that does not
    resolve to a real date returns None so callers can try the next source.
    """

    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    m = re.match(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[T\s])", value)
    if m:
        year, month, day = (int(part) for part in m.groups())
        return _iso_or_none(year, month, day)
    return recognize_date(value)


def to_date(iso: str | None) -> date | None:
    if not iso:
        return None
    try:
        return date.fromisoformat(iso[:10])
    except ValueError:
        return None


def to_epoch_ms(iso: str | None) -> int | None:
    day = to_date(iso)
    if day is None:
        return None
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return int(midnight.timestamp() * 1000)


def format_long_date(iso: str | None) -> str | None:
    """Render ``Thursday, March 4, 2021`` without touching the process locale."""

    day = to_date(iso)
    if day is None:
        return None
    weekday = _WEEKDAYS[day.weekday()]
    month = _MONTHS[day.month - 1]
    return f"{weekday}, {month} {day.day}, {day.year}"


def is_weekday_name(text: str) -> bool:
    return text.strip().lower() in {name.lower() for name in _WEEKDAYS}
