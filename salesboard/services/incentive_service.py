import datetime
import logging
from typing import List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.constants import ApplicableTo, PayoutStatus, RewardType
from salesboard.core.exceptions import NotFoundError, ValidationError
from salesboard.models.incentive import IncentiveAward, IncentiveTier
from salesboard.repositories.incentive_repository import IncentiveRepository
from salesboard.services import payout_lifecycle
from salesboard.services.performance_service import PerformanceService
from salesboard.services.target_service import TargetService
from salesboard.utils.date_utils import get_month_range
from salesboard.utils.rewards import (
    calculate_incentive_reward,
    match_incentive_tier,
    rounded_achievement_percent,
)
from salesboard.utils.validators import (
    validate_choice,
    validate_non_negative,
    validate_year_month,
)

logger = logging.getLogger(__name__)


class IncentiveService:
    def __init__(self, session: AsyncSession):
        self.repo = IncentiveRepository(session)
        self.performance_service = PerformanceService(session)
        self.target_service = TargetService(session)

    async def create_tier(
        self,
        name: str,
        min_achievement_percent: float,
        reward_type: str,
        max_achievement_percent: Optional[float] = None,
        fixed_amount: Optional[float] = None,
        percentage_rate: Optional[float] = None,
        applicable_to: str = ApplicableTo.ALL.value,
        sort_order: int = 0,
        description: Optional[str] = None,
    ) -> IncentiveTier:
        """
        Создает уровень мотивации. Диапазон [min, max), max=None - без верхней границы.
        Пересечение диапазонов не запрещено: при подборе побеждает больший min.
        """
        if not name or not name.strip():
            raise ValidationError("Название уровня не может быть пустым")

        reward_type = validate_choice(reward_type, RewardType, "Тип вознаграждения")
        applicable_to = validate_choice(applicable_to, ApplicableTo, "Область применения")
        min_percent = validate_non_negative(min_achievement_percent, "Минимальный процент")
        max_percent = None
        if max_achievement_percent is not None:
            max_percent = validate_non_negative(max_achievement_percent, "Максимальный процент")
            if max_percent <= min_percent:
                raise ValidationError(
                    "Максимальный процент должен быть больше минимального"
                )

        fixed = None
        if fixed_amount is not None:
            fixed = validate_non_negative(fixed_amount, "Фиксированная сумма")
        rate = None
        if percentage_rate is not None:
            rate = validate_non_negative(percentage_rate, "Процент вознаграждения")

        if reward_type in (RewardType.FIXED.value, RewardType.BOTH.value) and fixed is None:
            raise ValidationError("Для этого типа вознаграждения нужна фиксированная сумма")
        if reward_type in (RewardType.PERCENTAGE.value, RewardType.BOTH.value) and rate is None:
            raise ValidationError("Для этого типа вознаграждения нужен процент")

        tier = await self.repo.create_tier(
            name=name.strip(),
            description=description,
            min_achievement_percent=min_percent,
            max_achievement_percent=max_percent,
            reward_type=reward_type,
            fixed_amount=fixed,
            percentage_rate=rate,
            applicable_to=applicable_to,
            sort_order=sort_order,
        )
        logger.info(
            f"Создан уровень мотивации {tier.id} '{tier.name}': "
            f"[{min_percent}, {max_percent}) {reward_type}"
        )
        return tier

    async def deactivate_tier(self, tier_id: int) -> IncentiveTier:
        tier = await self.repo.get_tier(tier_id)
        if tier is None:
            raise NotFoundError(f"Уровень мотивации {tier_id} не найден")
        tier.is_active = False
        return await self.repo.save(tier)

    async def list_tiers(self, active_only: bool = True) -> List[IncentiveTier]:
        return await self.repo.get_tiers(active_only=active_only)

    async def match_tier(
        self, achievement_percent_value: float, scope: str
    ) -> Optional[IncentiveTier]:
        """Подходящий уровень для процента выполнения или None"""
        scope = validate_choice(scope, ApplicableTo, "Область применения")
        tiers = await self.repo.get_tiers(active_only=True)
        return match_incentive_tier(tiers, achievement_percent_value, scope)

    async def calculate_branch_incentives(
        self, year_month: str, today: Optional[datetime.date] = None
    ) -> List[IncentiveAward]:
        """
        Рассчитывает месячные награды филиалов с действующим планом.

        Награда создается только при найденном уровне. Прежняя награда в
        статусе pending за тот же период заменяется; утвержденные и
        выплаченные не трогаются, и филиал в этом случае пропускается.

        Returns:
            List[IncentiveAward]: Созданные награды
        """
        year_month = validate_year_month(year_month)
        period_start, period_end = get_month_range(year_month)
        tiers = await self.repo.get_tiers(active_only=True)
        targets = await self.target_service.list_month_targets(
            year_month, effective_only=True
        )

        awards = []
        for target in targets:
            performance = await self.performance_service.get_branch_performance(
                target.branch_id, year_month, today=today
            )
            award = await self._store_award(
                tiers,
                scope=ApplicableTo.BRANCH.value,
                branch_id=target.branch_id,
                cashier_id=None,
                period_start=period_start,
                period_end=period_end,
                target_amount=performance.target_amount,
                achieved_amount=performance.achieved_amount,
                journal_ids=performance.journal_ids,
            )
            if award is not None:
                awards.append(award)

        logger.info(f"Рассчитаны награды филиалов за {year_month}: {len(awards)}")
        return awards

    async def calculate_cashier_incentives(
        self, year_month: str, branch_id: Optional[int] = None
    ) -> List[IncentiveAward]:
        """Месячные награды кассиров по выполнению их доли дневных планов"""
        year_month = validate_year_month(year_month)
        period_start, period_end = get_month_range(year_month)
        tiers = await self.repo.get_tiers(active_only=True)
        cashiers = await self.performance_service.get_cashier_performance(
            period_start, period_end, branch_id=branch_id
        )

        awards = []
        for item in cashiers:
            award = await self._store_award(
                tiers,
                scope=ApplicableTo.CASHIER.value,
                branch_id=item.branch_id,
                cashier_id=item.cashier_id,
                period_start=period_start,
                period_end=period_end,
                target_amount=item.target_share,
                achieved_amount=item.total_sales,
                journal_ids=item.journal_ids,
            )
            if award is not None:
                awards.append(award)

        logger.info(f"Рассчитаны награды кассиров за {year_month}: {len(awards)}")
        return awards

    async def _store_award(
        self,
        tiers: List[IncentiveTier],
        scope: str,
        branch_id: Optional[int],
        cashier_id: Optional[int],
        period_start: datetime.date,
        period_end: datetime.date,
        target_amount: float,
        achieved_amount: float,
        journal_ids: List[int],
    ) -> Optional[IncentiveAward]:
        existing = await self.repo.find_award(
            period_start, period_end, branch_id=branch_id, cashier_id=cashier_id
        )
        if existing is not None and existing.status != PayoutStatus.PENDING.value:
            logger.info(
                f"Награда {existing.id} уже в статусе {existing.status}, пересчет пропущен"
            )
            return None

        percent = rounded_achievement_percent(achieved_amount, target_amount)
        tier = match_incentive_tier(tiers, percent, scope)
        if tier is None:
            logger.info(
                f"Нет подходящего уровня для {scope} "
                f"{cashier_id or branch_id}: выполнение {percent:.2f}%"
            )
            if existing is not None:
                await self.repo.replace_award(None, existing)
            return None

        reward = calculate_incentive_reward(tier, target_amount, achieved_amount)
        award = IncentiveAward(
            award_type="monthly",
            branch_id=branch_id,
            cashier_id=cashier_id,
            period_start=period_start,
            period_end=period_end,
            target_amount=target_amount,
            achieved_amount=achieved_amount,
            achievement_percent=percent,
            tier_id=tier.id,
            calculated_reward=reward,
            final_reward=reward,
            status=PayoutStatus.PENDING.value,
            journal_ids=list(journal_ids),
        )
        return await self.repo.replace_award(award, existing)

    async def adjust_award(
        self,
        award_id: int,
        final_reward: Union[float, str],
        notes: Optional[str] = None,
    ) -> IncentiveAward:
        """Ручная правка суммы к выплате до утверждения"""
        award = await self._get_award_or_raise(award_id)
        payout_lifecycle.ensure_pending(award)
        value = validate_non_negative(final_reward, "Сумма награды")
        award.adjusted_reward = value
        award.final_reward = value
        if notes is not None:
            award.notes = notes
        award = await self.repo.save(award)
        logger.info(
            f"Награда {award_id} скорректирована: {award.calculated_reward} -> {value}"
        )
        return award

    async def approve_award(self, award_id: int, approver_id: int) -> IncentiveAward:
        award = await self._get_award_or_raise(award_id)
        payout_lifecycle.approve(award, approver_id)
        award = await self.repo.save(award)
        logger.info(f"Награда {award_id} утверждена пользователем {approver_id}")
        return award

    async def pay_award(self, award_id: int) -> IncentiveAward:
        award = await self._get_award_or_raise(award_id)
        payout_lifecycle.pay(award)
        award = await self.repo.save(award)
        logger.info(f"Награда {award_id} выплачена: {award.final_reward}")
        return award

    async def list_awards(
        self,
        status: Optional[str] = None,
        branch_id: Optional[int] = None,
        year_month: Optional[str] = None,
    ) -> List[IncentiveAward]:
        period_start = period_end = None
        if year_month:
            period_start, period_end = get_month_range(validate_year_month(year_month))
        if status:
            status = validate_choice(status, PayoutStatus, "Статус")
        return await self.repo.get_awards(
            status=status,
            branch_id=branch_id,
            period_start=period_start,
            period_end=period_end,
        )

    async def _get_award_or_raise(self, award_id: int) -> IncentiveAward:
        award = await self.repo.get_award(award_id)
        if award is None:
            raise NotFoundError(f"Награда {award_id} не найдена")
        return award
