"""
Иерархия ошибок модуля планов продаж и мотивации.
"""


class SalesTargetError(Exception):
    """Базовая ошибка модуля"""


class ValidationError(SalesTargetError, ValueError):
    """Некорректные входные данные от вызывающей стороны"""


class ConfigurationError(SalesTargetError):
    """
    Непригодные справочные данные (профили весов, тарифы).
    Повтор запроса не поможет, нужно исправить настройки.
    """


class NoProfileError(ConfigurationError):
    """Не задан ни профиль плана, ни профиль по умолчанию"""


class DegenerateProfileError(ConfigurationError):
    """Сумма весов дней месяца равна нулю"""


class NotFoundError(SalesTargetError, LookupError):
    """Запись с указанным ID не найдена"""


class InvalidStatusTransitionError(SalesTargetError):
    """Недопустимый переход статуса (pending -> approved -> paid)"""
