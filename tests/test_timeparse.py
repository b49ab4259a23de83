from __future__ import annotations
from datetime import time

import pytest

from blueprints.enrollments.timeparse import TimeRangeError, parse_clock, parse_time_range


@pytest.mark.parametrize("text, start, end", [
    ("11:30am - 2:30pm", time(11, 30), time(14, 30)),
    ("6:00pm - 9:00pm", time(18, 0), time(21, 0)),
    ("18:00-21:00", time(18, 0), time(21, 0)),
    ("9:00 - 12:00", time(9, 0), time(12, 0)),
    ("9am-12pm", time(9, 0), time(12, 0)),
    ("12:00 AM – 1:15 AM", time(0, 0), time(1, 15)),
])
def test_parses_common_forms(text, start, end):
    rng = parse_time_range(text)
    assert (rng.start, rng.end) == (start, end)


def test_label_is_24h_and_stable():
    rng = parse_time_range("11:30am - 2:30pm")
    assert rng.label == "11:30-14:30"
    # normalized output parses to the same range
    assert parse_time_range(rng.label) == rng


def test_noon_and_midnight():
    assert parse_clock("12pm") == time(12, 0)
    assert parse_clock("12am") == time(0, 0)


@pytest.mark.parametrize("text", [
    "",
    "18:00",
    "18:00-19:00-20:00",
    "25:00-26:00",
    "13pm-2pm",
    "9:75-10:00",
    "noon-1pm",
])
def test_rejects_malformed(text):
    with pytest.raises(TimeRangeError) as exc:
        parse_time_range(text)
    assert exc.value.status_code == 400


def test_end_must_follow_start():
    with pytest.raises(TimeRangeError, match="must end after it starts"):
        parse_time_range("2:30pm - 11:30am")
    with pytest.raises(TimeRangeError):
        parse_time_range("10:00-10:00")
