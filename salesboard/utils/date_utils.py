import calendar
import datetime
import re
from typing import Iterator, Optional, Tuple

import pytz

from salesboard.core.config import TIMEZONE
from salesboard.core.exceptions import ValidationError

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_year_month(year_month: str) -> Tuple[int, int]:
    """
    Разбирает строку месяца в формате YYYY-MM.

    Args:
        year_month: Строка вида "2025-02"

    Returns:
        Tuple[int, int]: Год и номер месяца

    Raises:
        ValidationError: Если строка пустая или имеет неверный формат
    """
    if not year_month:
        raise ValidationError("Не указан месяц (ожидается формат YYYY-MM)")
    if not isinstance(year_month, str):
        raise ValidationError(
            f"Неверный формат месяца: {year_month!r}. Используйте формат YYYY-MM"
        )

    match = _YEAR_MONTH_RE.match(year_month.strip())
    if not match:
        raise ValidationError(
            f"Неверный формат месяца: {year_month}. Используйте формат YYYY-MM"
        )

    year, month = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise ValidationError(f"Неверный год: {year}")
    if not 1 <= month <= 12:
        raise ValidationError(f"Неверный номер месяца: {month}")

    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def year_month_of(date_obj: datetime.date) -> str:
    return format_year_month(date_obj.year, date_obj.month)


def get_month_range(year_month: str) -> Tuple[datetime.date, datetime.date]:
    """
    Возвращает первый и последний день месяца.

    Args:
        year_month: Месяц в формате YYYY-MM

    Returns:
        Tuple[datetime.date, datetime.date]: Кортеж из первого и последнего дня месяца
    """
    year, month = parse_year_month(year_month)
    _, last_day_of_month = calendar.monthrange(year, month)
    return datetime.date(year, month, 1), datetime.date(year, month, last_day_of_month)


def days_in_month(year_month: str) -> int:
    year, month = parse_year_month(year_month)
    return calendar.monthrange(year, month)[1]


def iter_month_days(year_month: str) -> Iterator[datetime.date]:
    first_day, last_day = get_month_range(year_month)
    return iter_dates(first_day, last_day)


def iter_dates(
    date_from: datetime.date, date_to: datetime.date
) -> Iterator[datetime.date]:
    """Все даты от date_from до date_to включительно"""
    current = date_from
    while current <= date_to:
        yield current
        current += datetime.timedelta(days=1)


def sunday_based_weekday(date_obj: datetime.date) -> int:
    """Номер дня недели, где 0 - воскресенье, 6 - суббота"""
    return (date_obj.weekday() + 1) % 7


def today_local() -> datetime.date:
    """Текущая дата в часовом поясе сети"""
    return datetime.datetime.now(pytz.timezone(TIMEZONE)).date()


def utcnow() -> datetime.datetime:
    """Текущее время UTC без tzinfo (в таком виде хранятся метки в БД)"""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def days_passed(year_month: str, today: Optional[datetime.date] = None) -> int:
    """
    Количество прошедших дней месяца относительно today.

    До начала месяца - 0, после окончания - число дней в месяце,
    внутри месяца - номер текущего дня.
    """
    today = today or today_local()
    first_day, last_day = get_month_range(year_month)

    if today < first_day:
        return 0
    if today > last_day:
        return last_day.day
    return today.day
