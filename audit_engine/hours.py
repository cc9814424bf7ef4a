"""
Opening-hours parsing and rendering.

Structured data delivers hours as specification rows, as a single
delimited string ("Mo,Tu,We 07:00-19:00"), or as a list of such strings.
The shape is decided once here: every input becomes either
StructuredHours or RawHours (kept verbatim when no pattern matches).
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

DAY_ORDER = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEKDAYS = DAY_ORDER[:5]

_DAY_ALIASES = {
    "mo": "Mon", "mon": "Mon", "monday": "Mon",
    "tu": "Tue", "tue": "Tue", "tues": "Tue", "tuesday": "Tue",
    "we": "Wed", "wed": "Wed", "wednesday": "Wed",
    "th": "Thu", "thu": "Thu", "thur": "Thu", "thurs": "Thu", "thursday": "Thu",
    "fr": "Fri", "fri": "Fri", "friday": "Fri",
    "sa": "Sat", "sat": "Sat", "saturday": "Sat",
    "su": "Sun", "sun": "Sun", "sunday": "Sun",
}

# Trailing "07:00-19:00" of a delimited hours string; the day prefix before it
# is tokenized in code
TIME_SPAN_PATTERN = re.compile(r"(?<![\d:])(\d{1,2}:\d{2})\s*[-–]\s*(\d{1,2}:\d{2})\s*$")
DAY_RANGE_SEPARATOR = re.compile(r"\s*[-–]\s*")
HOURS_TEXT_PATTERN = re.compile(r"(\d{1,2}:\d{2})\s*(?:-|–|to)\s*(\d{1,2}:\d{2})", re.IGNORECASE)
TWENTY_FOUR_SEVEN_PATTERN = re.compile(r"\b24\s*/\s*7\b|\bopen 24 hours\b", re.IGNORECASE)

MAX_RAW_HOURS_CHARS = 500


@dataclass(frozen=True)
class StructuredHours:
    days: Tuple[str, ...]
    opens: str
    closes: str

    @property
    def is_24_7(self) -> bool:
        return (
            len(set(self.days)) == 7
            and self.opens == "00:00"
            and self.closes in ("23:59", "24:00")
        )


@dataclass(frozen=True)
class RawHours:
    text: str


HoursValue = Union[StructuredHours, RawHours]


# =============================================================================
# NORMALIZERS
# =============================================================================

def normalize_day(value: Any) -> Optional[str]:
    """Map 'Monday', 'Mo', 'https://schema.org/Monday' to 'Mon'."""
    if not isinstance(value, str):
        return None
    token = value.strip().rstrip("/").split("/")[-1].lower().rstrip(".")
    return _DAY_ALIASES.get(token)


def normalize_time(value: Any) -> Optional[str]:
    """'7:00' -> '07:00', '19:00:00' -> '19:00'."""
    if not isinstance(value, str):
        return None
    m = re.match(r"^\s*(\d{1,2}):(\d{2})", value)
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 24 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def _sorted_days(days) -> Tuple[str, ...]:
    unique = set(days)
    return tuple(d for d in DAY_ORDER if d in unique)


def _expand_day_tokens(spec: str) -> List[str]:
    days: List[str] = []
    spec = DAY_RANGE_SEPARATOR.sub("-", spec.strip(" ,-–"))
    for part in re.split(r"[,\s]+", spec):
        if not part:
            continue
        bounds = part.split("-")
        if len(bounds) > 2:
            return []
        if len(bounds) == 2:
            start, end = normalize_day(bounds[0]), normalize_day(bounds[1])
            if not start or not end:
                return []
            i, j = DAY_ORDER.index(start), DAY_ORDER.index(end)
            span = range(i, j + 1) if i <= j else list(range(i, 7)) + list(range(0, j + 1))
            days.extend(DAY_ORDER[k] for k in span)
        else:
            day = normalize_day(part)
            if not day:
                return []
            days.append(day)
    return days


# =============================================================================
# PARSING
# =============================================================================

def parse_hours_string(text: str) -> HoursValue:
    """Parse a delimited hours string; unmatched input comes back as RawHours."""
    text = text or ""
    m = TIME_SPAN_PATTERN.search(text)
    if m and text[:m.start()].strip():
        days = _expand_day_tokens(text[:m.start()])
        opens, closes = normalize_time(m.group(1)), normalize_time(m.group(2))
        if days and opens and closes:
            return StructuredHours(_sorted_days(days), opens, closes)
    return RawHours(" ".join(text.split())[:MAX_RAW_HOURS_CHARS])


def parse_hours_rows(rows: Sequence[Any]) -> Optional[StructuredHours]:
    """Aggregate specification rows into one day-set and the first open/close pair."""
    days: List[str] = []
    opens = closes = None
    for row in rows:
        if not isinstance(row, dict):
            continue
        raw_days = row.get("dayOfWeek")
        if not isinstance(raw_days, list):
            raw_days = [raw_days]
        row_days = [d for d in (normalize_day(x) for x in raw_days) if d]
        if not row_days:
            continue
        days.extend(row_days)
        if opens is None:
            opens = normalize_time(row.get("opens"))
            closes = normalize_time(row.get("closes"))
    if not days or not opens or not closes:
        return None
    return StructuredHours(_sorted_days(days), opens, closes)


def parse_opening_hours(value: Any) -> Optional[HoursValue]:
    """
    Decide the shape of a structured-data hours value.

    Returns:
        StructuredHours, RawHours (unparseable string), or None when the
        value carries no hours at all.
    """
    if isinstance(value, dict):
        value = [value]
    if isinstance(value, str):
        return parse_hours_string(value) if value.strip() else None
    if not isinstance(value, list) or not value:
        return None
    if all(isinstance(v, str) for v in value):
        texts = [v.strip() for v in value if v.strip()]
        parsed = [parse_hours_string(v) for v in texts]
        if not parsed:
            return None
        if len(parsed) == 1:
            return parsed[0]
        if any(isinstance(p, RawHours) for p in parsed):
            return RawHours("; ".join(texts)[:MAX_RAW_HOURS_CHARS])
        first = parsed[0]
        all_days = [d for p in parsed for d in p.days]
        return StructuredHours(_sorted_days(all_days), first.opens, first.closes)
    return parse_hours_rows(value)


def hours_from_text(text: str) -> Optional[StructuredHours]:
    """Last-resort hours from free text: a 24/7 claim or an 'HH:MM - HH:MM' span."""
    if not text:
        return None
    if TWENTY_FOUR_SEVEN_PATTERN.search(text):
        return StructuredHours(DAY_ORDER, "00:00", "23:59")
    m = HOURS_TEXT_PATTERN.search(text)
    if not m:
        return None
    opens, closes = normalize_time(m.group(1)), normalize_time(m.group(2))
    if not opens or not closes:
        return None
    return StructuredHours((), opens, closes)


# =============================================================================
# RENDERING
# =============================================================================

def format_days(days: Sequence[str]) -> str:
    ordered = _sorted_days(days)
    if len(ordered) == 7:
        return "Mon–Sun"
    if ordered == WEEKDAYS:
        return "Mon–Fri"
    return ", ".join(ordered)


def format_time_short(value: str) -> str:
    """'07:00' -> '7', '19:30' -> '19:30'."""
    hour, _, minute = value.partition(":")
    hour = str(int(hour)) if hour.isdigit() else hour
    return hour if minute in ("", "00") else f"{hour}:{minute}"


def render_hours(hours: HoursValue) -> str:
    if isinstance(hours, RawHours):
        return hours.text
    if hours.is_24_7:
        return "24/7"
    span = f"{format_time_short(hours.opens)}–{format_time_short(hours.closes)}"
    if not hours.days:
        return span
    return f"{format_days(hours.days)} {span}"
