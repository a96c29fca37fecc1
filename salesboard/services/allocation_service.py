import datetime
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.config import PRESERVE_MANUAL_OVERRIDES, SHIFT_WEIGHTS
from salesboard.core.constants import HOLIDAY_SEASON_TYPE, TargetStatus
from salesboard.core.exceptions import (
    DegenerateProfileError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from salesboard.models.daily_allocation import DailyAllocation
from salesboard.models.shift_allocation import ShiftAllocation
from salesboard.repositories.allocation_repository import AllocationRepository
from salesboard.repositories.season_repository import SeasonRepository
from salesboard.services.target_service import TargetService
from salesboard.services.weight_profile_service import WeightProfileService
from salesboard.utils.date_utils import (
    get_month_range,
    iter_month_days,
    sunday_based_weekday,
)
from salesboard.utils.validators import validate_non_negative, validate_shift_weights

logger = logging.getLogger(__name__)


def season_adjustments(
    days: Iterable[datetime.date], seasons: Iterable, branch_id: int
) -> Tuple[Dict[datetime.date, float], Set[datetime.date]]:
    """
    Множители весов и праздничные дни по сезонам.

    Множители пересекающихся сезонов перемножаются. Сезон с
    applicable_branches=None действует во всех филиалах.

    Returns:
        Tuple[Dict[date, float], Set[date]]: Множители по датам и набор праздничных дней
    """
    multipliers: Dict[datetime.date, float] = {}
    holidays: Set[datetime.date] = set()
    applicable = [
        season
        for season in seasons
        if season.applicable_branches is None or branch_id in season.applicable_branches
    ]

    for day in days:
        for season in applicable:
            if season.start_date <= day <= season.end_date:
                multipliers[day] = multipliers.get(day, 1.0) * season.weight_multiplier
                if season.type == HOLIDAY_SEASON_TYPE:
                    holidays.add(day)

    return multipliers, holidays


def distribute_target(
    target_amount: float,
    days: Sequence[datetime.date],
    weights: Sequence[float],
    multipliers: Optional[Dict[datetime.date, float]] = None,
    holidays: Optional[Set[datetime.date]] = None,
    month_amount: Optional[float] = None,
) -> List[dict]:
    """
    Распределяет сумму по дням пропорционально весам дней недели.

    weight_percent считается как доля от month_amount (по умолчанию от
    target_amount), поэтому при полной генерации сумма процентов равна 100.
    Остаток округления дневных сумм до копеек переносится на последний
    день с ненулевым весом, так что сумма дневных планов равна target_amount.

    Args:
        target_amount: Распределяемая сумма
        days: Дни для распределения
        weights: Веса воскресенье ... суббота
        multipliers: Сезонные множители по датам
        holidays: Праздничные дни
        month_amount: Полная сумма месячного плана

    Returns:
        List[dict]: Поля строк DailyAllocation

    Raises:
        DegenerateProfileError: Если суммарный вес дней равен нулю или бесконечен
    """
    if not days:
        return []

    multipliers = multipliers or {}
    holidays = holidays or set()
    month_amount = month_amount or target_amount

    raw_weights = [
        weights[sunday_based_weekday(day)] * multipliers.get(day, 1.0) for day in days
    ]
    total_raw_weight = sum(raw_weights)
    if not math.isfinite(total_raw_weight):
        raise DegenerateProfileError(
            f"Сумма весов дней месяца не является конечным числом: {total_raw_weight}"
        )
    if total_raw_weight <= 0:
        raise DegenerateProfileError(
            "Сумма весов дней месяца равна нулю: распределить план невозможно"
        )

    rows = []
    for day, raw_weight in zip(days, raw_weights):
        share = raw_weight / total_raw_weight
        amount = target_amount * share
        rows.append(
            {
                "target_date": day,
                "weight_percent": round(
                    amount / month_amount * 100 if month_amount else 0.0, 4
                ),
                "daily_target": round(amount, 2),
                "is_holiday": day in holidays,
                "is_manual_override": False,
                "override_reason": None,
            }
        )

    remainder = round(target_amount - sum(row["daily_target"] for row in rows), 2)
    if remainder:
        last_weighted = max(i for i, w in enumerate(raw_weights) if w > 0)
        rows[last_weighted]["daily_target"] = round(
            rows[last_weighted]["daily_target"] + remainder, 2
        )

    return rows


def split_by_shift(daily_target: float, shift_weights: Dict[str, float]) -> List[dict]:
    """
    Делит дневной план между сменами пропорционально весам смен.
    Копеечный остаток достается последней смене с ненулевым весом,
    сумма планов смен равна дневному плану.
    """
    total_weight = sum(shift_weights.values())
    rows = [
        {
            "shift_type": shift,
            "shift_weight_percent": round(weight / total_weight * 100, 4),
            "shift_target": round(daily_target * weight / total_weight, 2),
        }
        for shift, weight in shift_weights.items()
    ]

    remainder = round(daily_target - sum(row["shift_target"] for row in rows), 2)
    if remainder:
        last_weighted = max(
            i for i, weight in enumerate(shift_weights.values()) if weight > 0
        )
        rows[last_weighted]["shift_target"] = round(
            rows[last_weighted]["shift_target"] + remainder, 2
        )
    return rows


class AllocationService:
    def __init__(
        self,
        session: AsyncSession,
        shift_weights: Optional[Union[str, Dict[str, float]]] = None,
    ):
        self.repo = AllocationRepository(session)
        self.season_repo = SeasonRepository(session)
        self.target_service = TargetService(session)
        self.profile_service = WeightProfileService(session)
        self.shift_weights = validate_shift_weights(
            SHIFT_WEIGHTS if shift_weights is None else shift_weights
        )

    async def generate_allocations(
        self, target_id: int, preserve_overrides: Optional[bool] = None
    ) -> List[DailyAllocation]:
        """
        Генерирует дневное распределение месячного плана и переводит план в active.

        По умолчанию (PRESERVE_MANUAL_OVERRIDES=false) все прежние строки,
        включая ручные корректировки, удаляются. При preserve_overrides=True
        скорректированные вручную дни остаются как есть, а на остальные дни
        распределяется остаток плана.

        Args:
            target_id: ID месячного плана
            preserve_overrides: Сохранять ручные корректировки; None - из настроек

        Returns:
            List[DailyAllocation]: Строки распределения по дням месяца

        Raises:
            NotFoundError: План не найден
            InvalidStatusTransitionError: План зафиксирован или в архиве
            NoProfileError: Нет профиля весов
            DegenerateProfileError: Все веса нулевые
        """
        target = await self.target_service.get_target_or_raise(target_id)
        if target.status in (TargetStatus.LOCKED.value, TargetStatus.ARCHIVED.value):
            raise InvalidStatusTransitionError(
                f"План {target.id} в статусе {target.status}: перегенерация запрещена"
            )

        profile = await self.profile_service.resolve_profile(target)
        preserve = (
            PRESERVE_MANUAL_OVERRIDES if preserve_overrides is None else preserve_overrides
        )

        kept: List[DailyAllocation] = []
        if preserve:
            existing = await self.repo.get_for_target(target.id)
            kept = [row for row in existing if row.is_manual_override]
        kept_dates = {row.target_date for row in kept}

        first_day, last_day = get_month_range(target.year_month)
        days = [day for day in iter_month_days(target.year_month) if day not in kept_dates]
        seasons = await self.season_repo.get_active_between(first_day, last_day)
        multipliers, holidays = season_adjustments(days, seasons, target.branch_id)

        budget = max(0.0, target.target_amount - sum(row.daily_target for row in kept))
        rows = distribute_target(
            budget,
            days,
            profile.weights,
            multipliers=multipliers,
            holidays=holidays,
            month_amount=target.target_amount,
        )
        for row in rows:
            row["shifts"] = split_by_shift(row["daily_target"], self.shift_weights)

        allocations = await self.repo.replace_for_target(
            target, rows, keep_ids=[row.id for row in kept]
        )
        logger.info(
            f"Сгенерировано распределение плана {target.id} ({target.year_month}): "
            f"{len(rows)} дней, сохранено корректировок: {len(kept)}, "
            f"профиль {profile.id}, версия {target.allocation_version}"
        )
        return allocations

    async def override_allocation(
        self,
        allocation_id: int,
        override_reason: Optional[str],
        daily_target: Optional[Union[float, str]] = None,
        is_holiday: Optional[bool] = None,
    ) -> DailyAllocation:
        """
        Ручная корректировка дня. Флаг is_manual_override ставится при любом
        вызове, даже если значения не изменились. Остальные дни не
        пересчитываются, сумма дневных планов может разойтись с месячным.
        Планы смен дня делятся заново от нового дневного плана.
        """
        allocation = await self.repo.get_by_id(allocation_id)
        if allocation is None:
            raise NotFoundError(f"День распределения {allocation_id} не найден")

        if daily_target is not None:
            allocation.daily_target = validate_non_negative(daily_target, "Дневной план")
        if is_holiday is not None:
            allocation.is_holiday = bool(is_holiday)
        allocation.is_manual_override = True
        allocation.override_reason = override_reason

        shifts = split_by_shift(allocation.daily_target, self.shift_weights)
        allocation = await self.repo.save(allocation, shifts=shifts)
        logger.info(
            f"Ручная корректировка дня {allocation.target_date} "
            f"(план {allocation.monthly_target_id}): {allocation.daily_target}, "
            f"причина: {override_reason}"
        )
        return allocation

    async def get_allocations(self, target_id: int) -> List[DailyAllocation]:
        return await self.repo.get_for_target(target_id)

    async def get_shift_allocations(self, target_id: int) -> List[ShiftAllocation]:
        return await self.repo.get_shifts_for_target(target_id)
