import datetime
import logging
from collections import Counter
from typing import List, Optional, Sequence, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.constants import ApplicableTo, CommissionType, PayoutStatus
from salesboard.core.exceptions import NotFoundError, ValidationError
from salesboard.models.commission import CommissionCalculation, CommissionRate
from salesboard.repositories.commission_repository import CommissionRepository
from salesboard.repositories.sales_journal_repository import SalesJournalRepository
from salesboard.repositories.user_repository import UserRepository
from salesboard.services import payout_lifecycle
from salesboard.services.target_service import TargetService
from salesboard.utils.date_utils import year_month_of
from salesboard.utils.rewards import (
    calculate_commission_amount,
    match_commission_rate,
    rounded_achievement_percent,
)
from salesboard.utils.validators import (
    validate_choice,
    validate_date,
    validate_date_range,
    validate_non_negative,
)

logger = logging.getLogger(__name__)


class CommissionService:
    def __init__(self, session: AsyncSession):
        self.repo = CommissionRepository(session)
        self.sales_repo = SalesJournalRepository(session)
        self.user_repo = UserRepository(session)
        self.target_service = TargetService(session)

    async def create_rate(
        self,
        name: str,
        commission_type: str,
        min_sales_amount: float = 0.0,
        max_sales_amount: Optional[float] = None,
        fixed_amount: Optional[float] = None,
        percentage_rate: Optional[float] = None,
        applicable_to: str = ApplicableTo.CASHIER.value,
        applicable_branches: Optional[Sequence[int]] = None,
        valid_from: Optional[Union[str, datetime.date]] = None,
        valid_to: Optional[Union[str, datetime.date]] = None,
        description: Optional[str] = None,
    ) -> CommissionRate:
        """
        Создает тариф комиссии с диапазоном продаж [min, max).
        Непересекаемость диапазонов не проверяется.
        """
        if not name or not name.strip():
            raise ValidationError("Название тарифа не может быть пустым")

        commission_type = validate_choice(commission_type, CommissionType, "Тип комиссии")
        applicable_to = validate_choice(applicable_to, ApplicableTo, "Область применения")
        min_amount = validate_non_negative(min_sales_amount, "Нижняя граница продаж")
        max_amount = None
        if max_sales_amount is not None:
            max_amount = validate_non_negative(max_sales_amount, "Верхняя граница продаж")
            if max_amount <= min_amount:
                raise ValidationError("Верхняя граница продаж должна быть больше нижней")

        start = validate_date(valid_from, "Начало действия") if valid_from else None
        end = validate_date(valid_to, "Окончание действия") if valid_to else None
        if start and end and start > end:
            raise ValidationError("Начало действия тарифа позже окончания")

        rate = await self.repo.create_rate(
            name=name.strip(),
            description=description,
            commission_type=commission_type,
            min_sales_amount=min_amount,
            max_sales_amount=max_amount,
            fixed_amount=(
                validate_non_negative(fixed_amount, "Фиксированная сумма")
                if fixed_amount is not None
                else None
            ),
            percentage_rate=(
                validate_non_negative(percentage_rate, "Процент комиссии")
                if percentage_rate is not None
                else None
            ),
            applicable_to=applicable_to,
            applicable_branches=list(applicable_branches) if applicable_branches else None,
            valid_from=start,
            valid_to=end,
        )
        logger.info(
            f"Создан тариф комиссии {rate.id} '{rate.name}': "
            f"[{min_amount}, {max_amount}) {commission_type}"
        )
        return rate

    async def deactivate_rate(self, rate_id: int) -> CommissionRate:
        rate = await self.repo.get_rate(rate_id)
        if rate is None:
            raise NotFoundError(f"Тариф комиссии {rate_id} не найден")
        rate.is_active = False
        return await self.repo.save(rate)

    async def list_rates(self, active_only: bool = True) -> List[CommissionRate]:
        return await self.repo.get_rates(active_only=active_only)

    async def calculate_commission(
        self,
        cashier_id: int,
        period_start: Union[str, datetime.date],
        period_end: Union[str, datetime.date],
        branch_id: Optional[int] = None,
    ) -> Optional[CommissionCalculation]:
        """
        Рассчитывает комиссию кассира за период.

        Сумма продаж берется по проведенным/утвержденным журналам кассира
        (при указании branch_id - только этого филиала). Тариф подбирается по
        диапазону продаж среди действующих на конец периода. Процент
        выполнения плана филиала сохраняется справочно и на сумму не влияет.

        Returns:
            Optional[CommissionCalculation]: Расчет в статусе pending или None,
            если подходящего диапазона нет либо расчет уже утвержден
        """
        period_start, period_end = validate_date_range(period_start, period_end)

        facts = await self.sales_repo.get_sales_facts(
            period_start, period_end, branch_id=branch_id, cashier_id=cashier_id
        )
        total_sales = sum(fact.total_sales for fact in facts)
        journal_ids = [fact.id for fact in facts]

        if branch_id is None:
            if facts:
                branch_id = Counter(f.branch_id for f in facts).most_common(1)[0][0]
            else:
                cashier = await self.user_repo.get_by_id(cashier_id)
                branch_id = cashier.branch_id if cashier else None

        existing = await self.repo.find_calculation(cashier_id, period_start, period_end)
        if existing is not None and existing.status != PayoutStatus.PENDING.value:
            logger.info(
                f"Комиссия {existing.id} уже в статусе {existing.status}, пересчет пропущен"
            )
            return None

        rates = await self.repo.get_valid_rates(period_end, ApplicableTo.CASHIER.value)
        rates = [
            rate
            for rate in rates
            if not rate.applicable_branches or branch_id in rate.applicable_branches
        ]
        rate = match_commission_rate(rates, total_sales)
        if rate is None:
            logger.warning(
                f"Нет тарифа комиссии для кассира {cashier_id}: продажи {total_sales} "
                f"за {period_start} - {period_end}"
            )
            if existing is not None:
                await self.repo.replace_calculation(None, existing)
            return None

        target_amount = None
        percent = None
        if branch_id is not None:
            target = await self.target_service.get_effective_target(
                branch_id, year_month_of(period_start)
            )
            if target is not None:
                target_amount = target.target_amount
                percent = rounded_achievement_percent(total_sales, target_amount)

        commission = calculate_commission_amount(rate, total_sales)
        calculation = CommissionCalculation(
            cashier_id=cashier_id,
            branch_id=branch_id,
            period_start=period_start,
            period_end=period_end,
            total_sales=total_sales,
            target_amount=target_amount,
            achievement_percent=percent,
            rate_id=rate.id,
            calculated_commission=commission,
            final_commission=commission,
            status=PayoutStatus.PENDING.value,
            journal_ids=journal_ids,
        )
        calculation = await self.repo.replace_calculation(calculation, existing)
        logger.info(
            f"Комиссия кассира {cashier_id} за {period_start} - {period_end}: "
            f"{commission} (продажи {total_sales}, тариф {rate.id})"
        )
        return calculation

    async def calculate_branch_commissions(
        self,
        branch_id: int,
        period_start: Union[str, datetime.date],
        period_end: Union[str, datetime.date],
    ) -> List[CommissionCalculation]:
        """Комиссии всех кассиров, проводивших продажи в филиале за период"""
        period_start, period_end = validate_date_range(period_start, period_end)
        facts = await self.sales_repo.get_sales_facts(
            period_start, period_end, branch_id=branch_id
        )
        cashier_ids = sorted({fact.cashier_id for fact in facts})

        calculations = []
        for cashier_id in cashier_ids:
            calculation = await self.calculate_commission(
                cashier_id, period_start, period_end, branch_id=branch_id
            )
            if calculation is not None:
                calculations.append(calculation)
        return calculations

    async def adjust_commission(
        self,
        calculation_id: int,
        final_commission: Union[float, str],
        notes: Optional[str] = None,
    ) -> CommissionCalculation:
        calculation = await self._get_calculation_or_raise(calculation_id)
        payout_lifecycle.ensure_pending(calculation)
        value = validate_non_negative(final_commission, "Сумма комиссии")
        calculation.adjusted_commission = value
        calculation.final_commission = value
        if notes is not None:
            calculation.notes = notes
        return await self.repo.save(calculation)

    async def approve_commission(
        self, calculation_id: int, approver_id: int
    ) -> CommissionCalculation:
        calculation = await self._get_calculation_or_raise(calculation_id)
        payout_lifecycle.approve(calculation, approver_id)
        calculation = await self.repo.save(calculation)
        logger.info(f"Комиссия {calculation_id} утверждена пользователем {approver_id}")
        return calculation

    async def pay_commission(self, calculation_id: int) -> CommissionCalculation:
        calculation = await self._get_calculation_or_raise(calculation_id)
        payout_lifecycle.pay(calculation)
        calculation = await self.repo.save(calculation)
        logger.info(
            f"Комиссия {calculation_id} выплачена: {calculation.final_commission}"
        )
        return calculation

    async def list_calculations(
        self,
        status: Optional[str] = None,
        branch_id: Optional[int] = None,
        cashier_id: Optional[int] = None,
    ) -> List[CommissionCalculation]:
        return await self.repo.get_calculations(
            status=status, branch_id=branch_id, cashier_id=cashier_id
        )

    async def _get_calculation_or_raise(
        self, calculation_id: int
    ) -> CommissionCalculation:
        calculation = await self.repo.get_calculation(calculation_id)
        if calculation is None:
            raise NotFoundError(f"Расчет комиссии {calculation_id} не найден")
        return calculation
