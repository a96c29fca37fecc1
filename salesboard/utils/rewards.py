"""
Подбор уровней мотивации и диапазонов комиссий, расчет вознаграждений.

Чистые функции без обращения к БД: на вход подаются уже загруженные
уровни/тарифы (ORM-объекты или любые объекты с теми же атрибутами).
"""

from typing import Iterable, Optional, Sequence

from salesboard.core.constants import ApplicableTo, CommissionType, RewardType


def _in_bracket(value: float, lower: float, upper: Optional[float]) -> bool:
    """Полуинтервал [lower, upper); upper=None - без верхней границы"""
    return lower <= value and (upper is None or value < upper)


def match_incentive_tier(
    tiers: Iterable, achievement_percent: float, scope: str
) -> Optional[object]:
    """
    Подбирает уровень мотивации для процента выполнения.

    Кандидаты - активные уровни нужной области (или "all"), в полуинтервал
    которых попадает процент. При пересечении побеждает уровень с наибольшим
    min_achievement_percent.

    Args:
        tiers: Уровни мотивации
        achievement_percent: Процент выполнения плана
        scope: "branch" или "cashier"

    Returns:
        Подходящий уровень или None
    """
    scope = ApplicableTo(scope).value
    candidates = [
        tier
        for tier in tiers
        if tier.is_active and tier.applicable_to in (ApplicableTo.ALL.value, scope)
    ]
    candidates.sort(key=lambda t: t.min_achievement_percent, reverse=True)

    for tier in candidates:
        if _in_bracket(
            achievement_percent,
            tier.min_achievement_percent,
            tier.max_achievement_percent,
        ):
            return tier
    return None


def calculate_incentive_reward(
    tier, target_amount: float, achieved_amount: float
) -> float:
    """
    Размер вознаграждения по уровню. Процентная часть начисляется
    только на сумму сверх плана.
    """
    reward_type = RewardType(tier.reward_type)
    fixed = tier.fixed_amount or 0.0
    rate = tier.percentage_rate or 0.0
    excess = max(0.0, achieved_amount - target_amount)

    if reward_type is RewardType.FIXED:
        reward = fixed
    elif reward_type is RewardType.PERCENTAGE:
        reward = excess * rate / 100
    elif reward_type is RewardType.BOTH:
        reward = fixed + excess * rate / 100
    else:
        raise AssertionError(f"Необработанный тип вознаграждения: {reward_type}")

    return round(reward, 2)


def match_commission_rate(rates: Sequence, total_sales: float) -> Optional[object]:
    """
    Подбирает тариф комиссии, в диапазон [min, max) которого попадает сумма продаж.

    Тарифы сортируются по нижней границе (затем по id), берется первый
    подходящий. Пересечение диапазонов конфигурацией не запрещено.
    """
    ordered = sorted(
        (rate for rate in rates if rate.is_active),
        key=lambda r: (r.min_sales_amount or 0.0, r.id or 0),
    )
    for rate in ordered:
        if _in_bracket(total_sales, rate.min_sales_amount or 0.0, rate.max_sales_amount):
            return rate
    return None


def calculate_commission_amount(rate, total_sales: float) -> float:
    commission_type = CommissionType(rate.commission_type)
    fixed = rate.fixed_amount or 0.0
    percent = rate.percentage_rate or 0.0

    if commission_type is CommissionType.FIXED:
        amount = fixed
    elif commission_type is CommissionType.PERCENTAGE:
        amount = total_sales * percent / 100
    elif commission_type is CommissionType.TIERED:
        amount = fixed + total_sales * percent / 100
    else:
        raise AssertionError(f"Необработанный тип комиссии: {commission_type}")

    return round(amount, 2)


def achievement_percent(achieved: float, target: float) -> float:
    """Процент выполнения; при нулевом плане - 0"""
    if target and target > 0:
        return achieved * 100 / target
    return 0.0


def rounded_achievement_percent(achieved: float, target: float) -> float:
    """
    Процент выполнения, округленный до сотых. По этому значению
    подбираются уровни и тарифы, и оно же сохраняется в расчетах.
    """
    return round(achievement_percent(achieved, target), 2)
