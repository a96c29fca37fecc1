import datetime
import logging
import math
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple, Type, Union

from salesboard.core.constants import ShiftType
from salesboard.core.exceptions import ValidationError
from salesboard.utils.date_utils import parse_year_month

logger = logging.getLogger(__name__)


def validate_branch_id(branch_id: Optional[int]) -> int:
    if branch_id is None or branch_id == "":
        raise ValidationError("Не указан филиал")
    try:
        branch_id = int(branch_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Неверный ID филиала: {branch_id}")
    if branch_id <= 0:
        raise ValidationError(f"Неверный ID филиала: {branch_id}")
    return branch_id


def validate_year_month(year_month: str) -> str:
    year, month = parse_year_month(year_month)
    return f"{year:04d}-{month:02d}"


def validate_amount(amount: Union[str, float, int], field: str = "Сумма") -> float:
    """
    Приводит сумму к float. Строки допускают запятую как разделитель.

    Raises:
        ValidationError: Если значение пустое, не является числом или бесконечно
    """
    if amount is None or amount == "":
        raise ValidationError(f"{field}: значение не может быть пустым")

    if isinstance(amount, str):
        amount = amount.replace(",", ".").replace(" ", "")

    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"{field}: неверный формат числа {amount!r}")

    if not math.isfinite(value):
        raise ValidationError(f"{field}: значение должно быть конечным числом, получено {amount!r}")
    return value


def validate_target_amount(amount: Union[str, float, int]) -> float:
    value = validate_amount(amount, "Сумма плана")
    if value <= 0:
        raise ValidationError("Сумма плана должна быть больше нуля")
    return value


def validate_non_negative(amount: Union[str, float, int], field: str) -> float:
    value = validate_amount(amount, field)
    if value < 0:
        raise ValidationError(f"{field}: значение не может быть отрицательным")
    return value


def validate_date(value: Union[str, datetime.date], field: str = "Дата") -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value:
        raise ValidationError(f"{field}: не указана")
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field}: неверный формат {value!r}, ожидается YYYY-MM-DD")


def validate_date_range(
    date_from: Union[str, datetime.date], date_to: Union[str, datetime.date]
) -> Tuple[datetime.date, datetime.date]:
    """
    Проверяет период. Начало не может быть позже конца.
    """
    start = validate_date(date_from, "Начало периода")
    end = validate_date(date_to, "Конец периода")
    if start > end:
        raise ValidationError(
            f"Начало периода {start.isoformat()} позже конца {end.isoformat()}"
        )
    return start, end


def validate_choice(value: str, enum_cls: Type[Enum], field: str) -> str:
    """Проверяет, что значение входит в допустимый набор, и возвращает его строкой"""
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(item.value for item in enum_cls)
        raise ValidationError(f"{field}: недопустимое значение {value!r} ({allowed})")


def validate_weights(weights: Iterable[Union[str, float, int]]) -> list:
    """
    Проверяет семь весов дней недели (воскресенье ... суббота).
    Отрицательные веса запрещены, нулевые допустимы.
    """
    values = [validate_non_negative(w, "Вес дня недели") for w in weights]
    if len(values) != 7:
        raise ValidationError(
            f"Профиль должен содержать 7 весов дней недели, получено {len(values)}"
        )
    if sum(values) == 0:
        logger.warning("Профиль весов состоит только из нулей")
    return values


def validate_shift_weights(
    weights: Union[str, Mapping[str, Union[str, float, int]]],
) -> Dict[str, float]:
    """
    Доли смен в дневном плане. Строка вида "morning:45,evening:45,night:10"
    или словарь смена -> вес. Не указанные смены получают вес 0.

    Returns:
        Dict[str, float]: Веса в порядке morning, evening, night
    """
    if isinstance(weights, str):
        pairs = {}
        for chunk in filter(None, (part.strip() for part in weights.split(","))):
            shift, sep, value = chunk.partition(":")
            if not sep:
                raise ValidationError(f"Неверный формат веса смены: {chunk!r}")
            pairs[shift.strip()] = value
        weights = pairs

    result = {shift.value: 0.0 for shift in ShiftType}
    for shift, value in weights.items():
        shift = validate_choice(shift, ShiftType, "Смена")
        result[shift] = validate_non_negative(value, f"Вес смены {shift}")

    if sum(result.values()) <= 0:
        raise ValidationError("Сумма весов смен должна быть больше нуля")
    return result
