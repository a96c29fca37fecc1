import datetime
import pytest
from salesboard.core.constants import RewardType
from salesboard.core.exceptions import ValidationError
from salesboard.utils.validators import (
    validate_amount,
    validate_branch_id,
    validate_choice,
    validate_date,
    validate_date_range,
    validate_non_negative,
    validate_shift_weights,
    validate_target_amount,
    validate_weights,
    validate_year_month,
)


def test_validate_amount_formats():
    assert validate_amount("1 500,75") == pytest.approx(1500.75)
    assert validate_amount(100) == 100.0
    assert validate_amount("-20") == -20.0


@pytest.mark.parametrize("value", [None, "", "сто", "1,2,3", "nan", "inf", "-inf", float("nan")])
def test_validate_amount_invalid(value):
    with pytest.raises(ValidationError):
        validate_amount(value)


def test_validate_target_amount_positive():
    assert validate_target_amount("0,01") == pytest.approx(0.01)
    with pytest.raises(ValidationError):
        validate_target_amount(0)


def test_validate_non_negative():
    assert validate_non_negative(0, "Вес") == 0
    with pytest.raises(ValidationError):
        validate_non_negative(-0.5, "Вес")


def test_validate_branch_id():
    assert validate_branch_id("7") == 7
    for value in (None, "", 0, -1, "abc"):
        with pytest.raises(ValidationError):
            validate_branch_id(value)


def test_validate_year_month_normalizes():
    assert validate_year_month(" 2025-02 ") == "2025-02"


def test_validate_dates():
    assert validate_date("2025-02-05") == datetime.date(2025, 2, 5)
    assert validate_date(datetime.datetime(2025, 2, 5, 10, 30)) == datetime.date(2025, 2, 5)
    with pytest.raises(ValidationError):
        validate_date("05.02.2025")

    assert validate_date_range("2025-02-01", "2025-02-01") == (
        datetime.date(2025, 2, 1),
        datetime.date(2025, 2, 1),
    )
    with pytest.raises(ValidationError):
        validate_date_range("2025-02-02", "2025-02-01")


def test_validate_choice():
    assert validate_choice("both", RewardType, "Тип") == "both"
    assert validate_choice(RewardType.FIXED, RewardType, "Тип") == "fixed"
    with pytest.raises(ValidationError):
        validate_choice("bonus", RewardType, "Тип")


def test_validate_weights():
    assert validate_weights(["1", 2, 3.5, 0, 0, 0, 0]) == [1.0, 2.0, 3.5, 0, 0, 0, 0]
    assert validate_weights([0] * 7) == [0.0] * 7
    with pytest.raises(ValidationError):
        validate_weights([1] * 6)


def test_validate_shift_weights():
    assert validate_shift_weights("morning:45, evening:45,night:10") == {
        "morning": 45,
        "evening": 45,
        "night": 10,
    }
    assert validate_shift_weights({"evening": "2,5"}) == {
        "morning": 0,
        "evening": 2.5,
        "night": 0,
    }


@pytest.mark.parametrize(
    "weights", ["morning:0,evening:0", "day:10", "morning=10", {"morning": -1}, {"night": "inf"}]
)
def test_validate_shift_weights_invalid(weights):
    with pytest.raises(ValidationError):
        validate_shift_weights(weights)
