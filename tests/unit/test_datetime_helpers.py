"""Unit tests for Datetime Helpers (ruang_tenang/utils/datetime_helpers.py)"""
import pytest
from datetime import datetime, date, timezone
from zoneinfo import ZoneInfo

from ruang_tenang.utils.datetime_helpers import (
    activity_day,
    day_bounds_utc,
    get_activity_timezone,
    now_utc,
    parse_date,
    to_utc,
)


# ============================================================================
# UTC Time Tests
# ============================================================================

def test_now_utc_returns_aware_utc_time():
    result = now_utc()

    assert result.utcoffset().total_seconds() == 0
    assert isinstance(result, datetime)


def test_to_utc_converts_aware_datetime():
    wib_time = datetime(2024, 1, 15, 10, 0, tzinfo=ZoneInfo("Asia/Jakarta"))

    result = to_utc(wib_time)

    assert result.hour == 3
    assert result.utcoffset().total_seconds() == 0


def test_to_utc_assumes_naive_is_utc():
    result = to_utc(datetime(2024, 1, 15, 10, 0))

    assert result.hour == 10
    assert result.tzinfo is not None


# ============================================================================
# Activity Day Tests
# ============================================================================

def test_get_activity_timezone_default():
    assert get_activity_timezone().key == "Asia/Jakarta"


def test_get_activity_timezone_invalid_falls_back_to_utc():
    assert get_activity_timezone("Mars/Olympus_Mons").key == "UTC"


@pytest.mark.parametrize("moment, expected", [
    (datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc), date(2024, 1, 15)),    # 07:00 WIB
    (datetime(2024, 1, 15, 16, 59, tzinfo=timezone.utc), date(2024, 1, 15)),  # 23:59 WIB
    (datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc), date(2024, 1, 16)),   # 00:00 WIB
    (datetime(2024, 12, 31, 18, 0, tzinfo=timezone.utc), date(2025, 1, 1)),   # new year in WIB
])
def test_activity_day_uses_wib(moment, expected, wib):
    assert activity_day(moment, wib) == expected


def test_activity_day_other_timezone():
    moment = datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc)

    assert activity_day(moment, ZoneInfo("UTC")) == date(2024, 1, 15)


def test_day_bounds_utc(wib):
    start, end = day_bounds_utc(date(2024, 1, 16), wib)

    assert start == datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 16, 17, 0, tzinfo=timezone.utc)


def test_day_bounds_contain_activity_day(wib):
    """Every instant inside the bounds maps back to the same activity day"""
    day = date(2024, 3, 10)
    start, end = day_bounds_utc(day, wib)

    assert activity_day(start, wib) == day
    assert activity_day(end, wib) == date(2024, 3, 11)


# ============================================================================
# Parsing Tests
# ============================================================================

def test_parse_date():
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("15/01/2024") is None
