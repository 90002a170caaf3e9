import pytest

from reminders.errors import ValidationError
from reminders.timeutils import format_time_for_display, hour_of, is_valid_time, parse_time, require_time


@pytest.mark.parametrize("text, expected", [
    ("6pm", "18:00"),
    ("12am", "00:00"),
    ("12pm", "12:00"),
    ("9:30am", "09:30"),
    ("11:45pm", "23:45"),
    ("18:00", "18:00"),
    ("6:30", "06:30"),
    ("18", "18:00"),
    ("6", "06:00"),
    ("  6 PM ", "18:00"),
    ("0:05", "00:05"),
    ("0am", "00:00"),
    ("0pm", "12:00"),
])
def test_parse_time_accepts_supported_formats(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", ["25:00", "9:75am", "24", "13pm", "noon", "", "6:5", "18:00:00"])
def test_parse_time_rejects_bad_input(text):
    assert parse_time(text) is None


def test_parse_time_accepts_every_display_string():
    for hour in range(24):
        for minute in (0, 7, 30, 59):
            canonical = f"{hour:02d}:{minute:02d}"
            assert parse_time(format_time_for_display(canonical)) == canonical


def test_format_time_for_display():
    assert format_time_for_display("00:00") == "12:00 AM UTC"
    assert format_time_for_display("12:00") == "12:00 PM UTC"
    assert format_time_for_display("18:05") == "6:05 PM UTC"
    assert format_time_for_display("09:30") == "9:30 AM UTC"


def test_require_time_raises_validation_error():
    with pytest.raises(ValidationError) as exc:
        require_time("25:00")
    assert exc.value.value == "25:00"
    assert require_time("6pm") == "18:00"


def test_canonical_helpers():
    assert is_valid_time("22:00")
    assert not is_valid_time("7:00")
    assert not is_valid_time("24:00")
    assert hour_of("09:45") == 9
