import datetime
import pytest
from salesboard.core.exceptions import ValidationError
from salesboard.utils.date_utils import (
    days_in_month,
    days_passed,
    get_month_range,
    iter_dates,
    parse_year_month,
    sunday_based_weekday,
    today_local,
    year_month_of,
)


def test_parse_year_month():
    assert parse_year_month("2025-02") == (2025, 2)
    assert parse_year_month(" 2024-12 ") == (2024, 12)


@pytest.mark.parametrize(
    "value", ["", None, "2025-00", "2025-13", "2025-2", "февраль", "0000-01", 202502, ["2025-02"]]
)
def test_parse_year_month_invalid(value):
    with pytest.raises(ValidationError):
        parse_year_month(value)


def test_month_range_and_length():
    assert get_month_range("2025-02") == (
        datetime.date(2025, 2, 1),
        datetime.date(2025, 2, 28),
    )
    assert days_in_month("2024-02") == 29
    assert days_in_month("2025-12") == 31


def test_year_month_of():
    assert year_month_of(datetime.date(2025, 3, 9)) == "2025-03"


def test_sunday_based_weekday():
    # 2 февраля 2025 - воскресенье, 8 февраля - суббота
    assert sunday_based_weekday(datetime.date(2025, 2, 2)) == 0
    assert sunday_based_weekday(datetime.date(2025, 2, 3)) == 1
    assert sunday_based_weekday(datetime.date(2025, 2, 8)) == 6


def test_iter_dates_inclusive():
    days = list(iter_dates(datetime.date(2025, 2, 27), datetime.date(2025, 3, 2)))
    assert [d.day for d in days] == [27, 28, 1, 2]
    assert list(iter_dates(datetime.date(2025, 3, 2), datetime.date(2025, 3, 1))) == []


@pytest.mark.parametrize(
    "today,expected",
    [
        (datetime.date(2025, 1, 31), 0),
        (datetime.date(2025, 2, 1), 1),
        (datetime.date(2025, 2, 15), 15),
        (datetime.date(2025, 2, 28), 28),
        (datetime.date(2025, 6, 1), 28),
    ],
)
def test_days_passed(today, expected):
    assert days_passed("2025-02", today) == expected


def test_today_local_is_date():
    assert isinstance(today_local(), datetime.date)
