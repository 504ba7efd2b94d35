"""Date and time parsing utilities for US-style event listings.

Handles the numeric and named-month date formats and the 12/24-hour time
formats commonly found on North American event pages. Dates normalize to
ISO ``YYYY-MM-DD``; times normalize to 24-hour ``HH:MM``.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Tuple

# English month names and abbreviations (lowercase) -> month number
_MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7,
    "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

# ISO: 2024-12-15 (optionally followed by T or space + time)
_RE_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s](.*))?$")

# US numeric: MM/DD/YYYY or MM-DD-YYYY, optionally followed by space + time
_RE_US_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:\s(.*))?$")
_RE_US_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})(?:\s(.*))?$")

# Named month: "December 25, 2024", "Dec 25 2024", "Saturday, Dec. 14th, 2024"
_RE_NAMED_YEAR = re.compile(
    r"^(?:[A-Za-z]+,?\s+)?([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$"
)

# Named month without year: "Dec 25", "December 25th"
_RE_NAMED_NO_YEAR = re.compile(
    r"^(?:[A-Za-z]+,?\s+)?([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?$"
)

# Clock times
_RE_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_RE_12H = re.compile(
    r"^(\d{1,2})(?::(\d{2}))?(?::(\d{2}))?\s*([ap])\.?\s*m\.?$", re.IGNORECASE
)
_RE_RANGE_SPLIT = re.compile(r"\s*(?:-|\u2013|\bto\b)\s*", re.IGNORECASE)

# Date followed by a time-looking tail: "2024-12-15 10:00 AM"
_RE_TIME_TAIL = re.compile(r"(\d{1,2}(?::\d{2})?\s*[ap]\.?\s*m\.?|\d{1,2}:\d{2}(?::\d{2})?)$", re.IGNORECASE)
_RE_JOINER_TAIL = re.compile(r"(?:\s*(?:,|@|\bat\b))*\s*$", re.IGNORECASE)
_RE_JOINER_HEAD = re.compile(r"^(?:\s*(?:,|@|\bat\b))*\s*", re.IGNORECASE)

# ISO clock after the T: "10:00:00", "10:00:00.000Z", "10:00-07:00"
_RE_ISO_CLOCK = re.compile(r"^\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedDate:
    """Outcome of parsing one date string.

    ``pattern`` names the format that matched (``None`` if none did).
    ``iso`` is set only when the matched components form a real calendar
    date; otherwise ``error`` explains why.
    """

    pattern: Optional[str]
    iso: Optional[str] = None
    year_inferred: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.iso is not None


@dataclass(frozen=True)
class ParsedTime:
    """Outcome of parsing a time or time range into 24-hour ``HH:MM``."""

    pattern: Optional[str]
    start: Optional[str] = None
    end: Optional[str] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.start is not None


def _validate_date(year: int, month: int, day: int) -> Tuple[Optional[str], str]:
    """Return (ISO string, "") or (None, reason)."""
    if not 1 <= month <= 12:
        return None, f"month {month} is out of range (1-12)"
    if not 1 <= day <= 31:
        return None, f"day {day} is out of range (1-31)"
    try:
        return date(year, month, day).isoformat(), ""
    except ValueError:
        return None, f"{year:04d}-{month:02d}-{day:02d} is not a real calendar date"


def _next_occurrence(month: int, day: int, today: date) -> Tuple[Optional[str], str]:
    """ISO date of the next ``month``/``day`` on or after ``today``."""
    iso, error = _validate_date(2000, month, day)  # leap year: checks day-of-month only
    if iso is None:
        return None, error
    for year in range(today.year, today.year + 5):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= today:
            return candidate.isoformat(), ""
    return None, f"no upcoming occurrence of month {month} day {day}"


def _time_tail_error(tail: Optional[str]) -> str:
    """Empty string when the text after a numeric date reads as a clock time."""
    if tail is None:
        return ""
    text = _RE_JOINER_HEAD.sub("", tail).strip()
    if not text or _RE_ISO_CLOCK.match(text) or parse_time_range(text).ok:
        return ""
    return f"unexpected text after date: '{text[:50]}'"


def parse_date(value: Any, today: Optional[date] = None) -> ParsedDate:
    """Parse a date string in common US formats.

    Supported formats:
    - ISO pass-through: 2024-12-15 (with optional time suffix)
    - US slash: 12/25/2024
    - US dash: 12-25-2024
    - Named month: "December 25, 2024", "Dec 25, 2024"
    - Named month without year: "Dec 25" (year inferred as next occurrence)

    Numeric formats always assume month first (US context).

    Args:
        value: Date string (or None/non-string).
        today: Reference date for year inference. Defaults to today.

    Returns:
        ParsedDate describing the match.
    """
    if value is None or isinstance(value, bool):
        return ParsedDate(pattern=None, error="date is empty")
    text = str(value).strip()
    if not text:
        return ParsedDate(pattern=None, error="date is empty")

    m = _RE_ISO.match(text)
    if m:
        tail_error = _time_tail_error(m.group(4))
        if tail_error:
            return ParsedDate(pattern="YYYY-MM-DD", error=tail_error)
        iso, error = _validate_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        return ParsedDate(pattern="YYYY-MM-DD", iso=iso, error=error)

    for pattern_name, regex in (("MM/DD/YYYY", _RE_US_SLASH), ("MM-DD-YYYY", _RE_US_DASH)):
        m = regex.match(text)
        if m:
            tail_error = _time_tail_error(m.group(4))
            if tail_error:
                return ParsedDate(pattern=pattern_name, error=tail_error)
            iso, error = _validate_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
            return ParsedDate(pattern=pattern_name, iso=iso, error=error)

    m = _RE_NAMED_YEAR.match(text)
    if m:
        month_num = _MONTHS.get(m.group(1).lower())
        if month_num is not None:
            iso, error = _validate_date(int(m.group(3)), month_num, int(m.group(2)))
            return ParsedDate(pattern="Month DD, YYYY", iso=iso, error=error)

    m = _RE_NAMED_NO_YEAR.match(text)
    if m:
        month_num = _MONTHS.get(m.group(1).lower())
        if month_num is not None:
            iso, error = _next_occurrence(month_num, int(m.group(2)), today or date.today())
            return ParsedDate(pattern="Month DD", iso=iso, year_inferred=True, error=error)

    return ParsedDate(pattern=None, error=f"'{text}' does not match any known date format")


def parse_date_to_iso(value: Any, today: Optional[date] = None) -> Optional[str]:
    """Parse a date string to ISO YYYY-MM-DD, or None if unparseable."""
    return parse_date(value, today=today).iso


def _format_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def _parse_single_time(text: str, meridiem: Optional[str] = None) -> ParsedTime:
    """Parse one clock time. ``meridiem`` ('a' or 'p') applies to a bare H:MM."""
    m = _RE_12H.match(text)
    if m:
        hour = int(m.group(1))
        minute = int(m.group(2) or 0)
        second = int(m.group(3) or 0)
        if hour == 0 or hour > 12:
            return ParsedTime(pattern="H:MM AM/PM", error=f"hour {hour} is out of range for 12-hour time (1-12)")
        if minute > 59:
            return ParsedTime(pattern="H:MM AM/PM", error=f"minute {minute} is out of range (0-59)")
        if second > 59:
            return ParsedTime(pattern="H:MM AM/PM", error=f"second {second} is out of range (0-59)")
        is_pm = m.group(4).lower() == "p"
        hour = hour % 12 + (12 if is_pm else 0)
        return ParsedTime(pattern="H:MM AM/PM", start=_format_clock(hour, minute))

    if meridiem is not None and text.isdigit():
        text = f"{text}:00"

    m = _RE_24H.match(text)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        second = int(m.group(3) or 0)
        if meridiem is not None:
            if hour == 0 or hour > 12:
                return ParsedTime(pattern="H:MM AM/PM", error=f"hour {hour} is out of range for 12-hour time (1-12)")
            if minute > 59:
                return ParsedTime(pattern="H:MM AM/PM", error=f"minute {minute} is out of range (0-59)")
            if second > 59:
                return ParsedTime(pattern="H:MM AM/PM", error=f"second {second} is out of range (0-59)")
            hour = hour % 12 + (12 if meridiem == "p" else 0)
            return ParsedTime(pattern="H:MM AM/PM", start=_format_clock(hour, minute))
        if hour > 23:
            return ParsedTime(pattern="HH:MM", error=f"hour {hour} is out of range for 24-hour time (0-23)")
        if minute > 59:
            return ParsedTime(pattern="HH:MM", error=f"minute {minute} is out of range (0-59)")
        if second > 59:
            return ParsedTime(pattern="HH:MM", error=f"second {second} is out of range (0-59)")
        return ParsedTime(pattern="HH:MM", start=_format_clock(hour, minute))

    return ParsedTime(pattern=None, error=f"'{text}' does not match any known time format")


def _meridiem_of(text: str) -> Optional[str]:
    m = _RE_12H.match(text)
    return m.group(4).lower() if m else None


def parse_time_range(value: Any) -> ParsedTime:
    """Parse a time or a time range into 24-hour start/end.

    Supported formats:
    - 24-hour: "14:30", "14:30:00"
    - 12-hour: "2:30 PM", "2:30PM", "2 pm", "2:30 p.m."
    - Ranges: "10:00 - 11:30 AM", "9am to 5pm", "1:00 PM - 3:00 PM"

    In a range, a side without AM/PM borrows the other side's meridiem; if
    that would put the start after the end, the start is read as morning.
    """
    if value is None or isinstance(value, bool):
        return ParsedTime(pattern=None, error="time is empty")
    text = str(value).strip()
    if not text:
        return ParsedTime(pattern=None, error="time is empty")

    single = _parse_single_time(text)
    if single.ok or single.pattern is not None:
        return single

    parts = [p for p in _RE_RANGE_SPLIT.split(text) if p]
    if len(parts) != 2:
        return single

    left, right = parts
    left_mer, right_mer = _meridiem_of(left), _meridiem_of(right)
    end = _parse_single_time(right, meridiem=left_mer if right_mer is None else None)
    start = _parse_single_time(left, meridiem=right_mer if left_mer is None else None)
    if not start.ok:
        return ParsedTime(pattern="time range", error=f"range start: {start.error}")
    if not end.ok:
        return ParsedTime(pattern="time range", error=f"range end: {end.error}")

    start_clock = start.start
    if left_mer is None and right_mer == "p" and start_clock > end.start:
        morning = _parse_single_time(left, meridiem="a")
        if morning.ok:
            start_clock = morning.start
    return ParsedTime(pattern="time range", start=start_clock, end=end.start)


def parse_time_to_24h(value: Any) -> Optional[str]:
    """Parse a time (or range start) to ``HH:MM``, or None if unparseable."""
    return parse_time_range(value).start


def split_date_time(value: Any) -> Tuple[str, str]:
    """Split "2024-12-15 10:00 AM" into its date part and time part.

    Returns ``(text, "")`` when the string carries no recognizable time tail.
    """
    if value is None:
        return "", ""
    text = str(value).strip()
    iso_with_t = re.match(r"^(\d{4}-\d{1,2}-\d{1,2})T(\d{1,2}:\d{2}(?::\d{2})?)", text)
    if iso_with_t:
        return iso_with_t.group(1), iso_with_t.group(2)
    m = _RE_TIME_TAIL.search(text)
    if not m or m.start() == 0:
        return text, ""
    date_part = _RE_JOINER_TAIL.sub("", text[: m.start()])
    return date_part, m.group(1).strip()
