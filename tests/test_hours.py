"""
Unit tests for opening-hours parsing and rendering.
"""

import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from audit_engine.hours import (
    DAY_ORDER,
    RawHours,
    StructuredHours,
    hours_from_text,
    normalize_day,
    normalize_time,
    parse_hours_string,
    parse_opening_hours,
    render_hours,
)


def _all_week_rows(opens="00:00", closes="23:59"):
    return [{
        "@type": "OpeningHoursSpecification",
        "dayOfWeek": ["https://schema.org/" + d for d in
                      ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")],
        "opens": opens,
        "closes": closes,
    }]


def test_day_and_time_normalization():
    assert normalize_day("https://schema.org/Monday") == "Mon"
    assert normalize_day("Tu") == "Tue"
    assert normalize_day("Someday") is None
    assert normalize_time("7:00") == "07:00"
    assert normalize_time("19:00:00") == "19:00"
    assert normalize_time("noon") is None


def test_full_week_midnight_to_midnight_is_24_7():
    hours = parse_opening_hours(_all_week_rows())
    assert isinstance(hours, StructuredHours)
    assert hours.is_24_7
    assert render_hours(hours) == "24/7"


def test_delimited_string_with_day_list():
    hours = parse_hours_string("Mo,Tu,We,Th,Fr,Sa,Su 07:00-19:00")
    assert hours.days == DAY_ORDER
    assert render_hours(hours) == "Mon–Sun 7–19"


def test_delimited_string_with_day_range():
    hours = parse_hours_string("Mo-Fr 08:00-17:30")
    assert hours.days == ("Mon", "Tue", "Wed", "Thu", "Fri")
    assert render_hours(hours) == "Mon–Fri 8–17:30"


def test_rows_aggregate_days_and_keep_first_times():
    rows = [
        {"dayOfWeek": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"], "opens": "08:00", "closes": "17:00"},
        {"dayOfWeek": "Saturday", "opens": "09:00", "closes": "13:00"},
    ]
    hours = parse_opening_hours(rows)
    assert hours.days == ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
    assert (hours.opens, hours.closes) == ("08:00", "17:00")


def test_unmatched_string_becomes_raw():
    hours = parse_opening_hours("By appointment only")
    assert isinstance(hours, RawHours)
    assert render_hours(hours) == "By appointment only"


def test_empty_values_carry_no_hours():
    assert parse_opening_hours("") is None
    assert parse_opening_hours([]) is None
    assert parse_opening_hours(None) is None


def test_hours_from_free_text():
    assert render_hours(hours_from_text("We're open 24 hours")) == "24/7"
    span = hours_from_text("Hours: 8:00 to 17:00")
    assert span.days == ()
    assert render_hours(span) == "8–17"
    assert hours_from_text("Call us anytime") is None


def test_spaced_day_range_and_times():
    hours = parse_hours_string("Mo - Fr 08:00 - 17:00")
    assert hours.days == ("Mon", "Tue", "Wed", "Thu", "Fri")
    assert render_hours(hours) == "Mon–Fri 8–17"


def test_long_prose_hours_returned_verbatim_quickly():
    """Twenty day words with no time span must fall through to raw text at once."""
    text = " ".join(["Monday"] * 20) + " by appointment"
    started = time.monotonic()
    hours = parse_opening_hours(text)
    assert time.monotonic() - started < 1.0
    assert isinstance(hours, RawHours)
    assert hours.text == text


def test_day_words_with_bad_prefix_stay_raw():
    started = time.monotonic()
    hours = parse_hours_string(" ".join(["Monday"] * 20) + " sometimes 08:00-17:00")
    assert time.monotonic() - started < 1.0
    assert isinstance(hours, RawHours)
