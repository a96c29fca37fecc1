import datetime
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.constants import ShiftType
from salesboard.repositories.allocation_repository import AllocationRepository
from salesboard.repositories.sales_journal_repository import SalesJournalRepository
from salesboard.services.target_service import EFFECTIVE_TARGET_STATUSES, TargetService
from salesboard.utils.date_utils import (
    days_in_month,
    days_passed,
    get_month_range,
    iter_dates,
    iter_month_days,
)
from salesboard.utils.rewards import achievement_percent
from salesboard.utils.validators import (
    validate_branch_id,
    validate_date_range,
    validate_year_month,
)

logger = logging.getLogger(__name__)


@dataclass
class DailyPerformance:
    date: datetime.date
    target: float
    achieved: float
    percent: float
    cumulative_target: float = 0.0
    cumulative_achieved: float = 0.0
    is_holiday: bool = False


@dataclass
class BranchPerformance:
    branch_id: int
    year_month: str
    target_amount: float = 0.0
    achieved_amount: float = 0.0
    achievement_percent: float = 0.0
    days_in_month: int = 0
    days_passed: int = 0
    average_daily_sales: float = 0.0
    projected_total: float = 0.0
    projected_achievement_percent: float = 0.0
    remaining_amount: float = 0.0
    required_daily_average: float = 0.0
    target_id: Optional[int] = None
    allocation_version: Optional[int] = None
    daily: List[DailyPerformance] = field(default_factory=list)
    journal_ids: List[int] = field(default_factory=list)


@dataclass
class CashierPerformance:
    cashier_id: int
    branch_id: int
    total_sales: float = 0.0
    transactions_count: int = 0
    average_ticket: float = 0.0
    days_worked: int = 0
    target_share: float = 0.0
    achievement_percent: float = 0.0
    journal_ids: List[int] = field(default_factory=list)


@dataclass
class ShiftBreakdown:
    shift_type: str
    total_sales: float = 0.0
    transactions_count: int = 0
    average_ticket: float = 0.0
    journals_count: int = 0
    target_amount: float = 0.0
    achievement_percent: float = 0.0


class PerformanceService:
    """Сопоставление дневных планов с проведенными продажами"""

    def __init__(self, session: AsyncSession):
        self.target_service = TargetService(session)
        self.allocation_repo = AllocationRepository(session)
        self.sales_repo = SalesJournalRepository(session)

    async def get_branch_performance(
        self,
        branch_id: int,
        year_month: str,
        today: Optional[datetime.date] = None,
    ) -> BranchPerformance:
        """
        Выполнение плана филиала за месяц с дневной разбивкой и прогнозом.

        Если действующего плана нет, возвращается нулевой результат
        (target_amount=0, achieved_amount=0, achievement_percent=0), а не ошибка.

        Args:
            branch_id: ID филиала
            year_month: Месяц в формате YYYY-MM
            today: Дата для расчета прогноза, по умолчанию сегодня в часовом поясе сети

        Returns:
            BranchPerformance: Результат расчета
        """
        branch_id = validate_branch_id(branch_id)
        year_month = validate_year_month(year_month)
        month_days = days_in_month(year_month)
        passed = days_passed(year_month, today)

        result = BranchPerformance(
            branch_id=branch_id,
            year_month=year_month,
            days_in_month=month_days,
            days_passed=passed,
        )

        target = await self.target_service.get_effective_target(branch_id, year_month)
        if target is None:
            logger.warning(
                f"Нет действующего плана для филиала {branch_id} на {year_month}"
            )
            return result

        allocations = await self.allocation_repo.get_for_target(target.id)
        allocation_by_date = {row.target_date: row for row in allocations}

        first_day, last_day = get_month_range(year_month)
        facts = await self.sales_repo.get_sales_facts(
            first_day, last_day, branch_id=branch_id
        )
        sales_by_date: Dict[datetime.date, float] = defaultdict(float)
        for fact in facts:
            sales_by_date[fact.date] += fact.total_sales

        cumulative_target = 0.0
        cumulative_achieved = 0.0
        for day in iter_month_days(year_month):
            allocation = allocation_by_date.get(day)
            day_target = allocation.daily_target if allocation else 0.0
            achieved = sales_by_date.get(day, 0.0)
            cumulative_target += day_target
            cumulative_achieved += achieved
            result.daily.append(
                DailyPerformance(
                    date=day,
                    target=day_target,
                    achieved=achieved,
                    percent=achievement_percent(achieved, day_target),
                    cumulative_target=round(cumulative_target, 2),
                    cumulative_achieved=round(cumulative_achieved, 2),
                    is_holiday=bool(allocation and allocation.is_holiday),
                )
            )

        result.target_id = target.id
        result.allocation_version = target.allocation_version
        result.target_amount = target.target_amount
        result.achieved_amount = sum(fact.total_sales for fact in facts)
        result.achievement_percent = achievement_percent(
            result.achieved_amount, result.target_amount
        )
        result.journal_ids = [fact.id for fact in facts]

        if passed > 0:
            result.average_daily_sales = result.achieved_amount / passed
        result.projected_total = result.average_daily_sales * month_days
        result.projected_achievement_percent = achievement_percent(
            result.projected_total, result.target_amount
        )

        result.remaining_amount = max(0.0, result.target_amount - result.achieved_amount)
        remaining_days = month_days - passed
        if remaining_days > 0:
            result.required_daily_average = result.remaining_amount / remaining_days

        return result

    async def get_targets_vs_actuals(
        self,
        date_from: Union[str, datetime.date],
        date_to: Union[str, datetime.date],
        branch_id: Optional[int] = None,
    ) -> List[dict]:
        """
        План/факт по дням и филиалам за произвольный период.

        Returns:
            List[dict]: Строки с ключами branch_id, date, target, achieved, percent
        """
        date_from, date_to = validate_date_range(date_from, date_to)
        if branch_id is not None:
            branch_id = validate_branch_id(branch_id)

        daily_targets = await self.allocation_repo.get_daily_targets(
            date_from, date_to, EFFECTIVE_TARGET_STATUSES, branch_id=branch_id
        )
        facts = await self.sales_repo.get_sales_facts(
            date_from, date_to, branch_id=branch_id
        )

        achieved: Dict[tuple, float] = defaultdict(float)
        for fact in facts:
            achieved[(fact.branch_id, fact.date)] += fact.total_sales

        branch_ids = sorted(
            {key[0] for key in daily_targets} | {key[0] for key in achieved}
        )
        rows = []
        for row_branch_id in branch_ids:
            for day in iter_dates(date_from, date_to):
                key = (row_branch_id, day)
                allocation = daily_targets.get(key)
                target = allocation.daily_target if allocation else 0.0
                actual = achieved.get(key, 0.0)
                rows.append(
                    {
                        "branch_id": row_branch_id,
                        "date": day,
                        "target": target,
                        "achieved": actual,
                        "difference": actual - target,
                        "percent": achievement_percent(actual, target),
                    }
                )
        return rows

    async def get_shift_breakdown(
        self,
        date_from: Union[str, datetime.date],
        date_to: Union[str, datetime.date],
        branch_id: Optional[int] = None,
    ) -> List[ShiftBreakdown]:
        """
        Продажи, чеки и средний чек по типам смен против планов смен
        действующих месячных планов. Журналы без смены не учитываются.
        """
        date_from, date_to = validate_date_range(date_from, date_to)
        if branch_id is not None:
            branch_id = validate_branch_id(branch_id)
        facts = await self.sales_repo.get_sales_facts(
            date_from, date_to, branch_id=branch_id
        )

        breakdown = {shift.value: ShiftBreakdown(shift.value) for shift in ShiftType}
        for fact in facts:
            item = breakdown.get(fact.shift_type)
            if item is None:
                continue
            item.total_sales += fact.total_sales
            item.transactions_count += fact.transaction_count
            item.journals_count += 1

        shift_targets = await self.allocation_repo.get_shift_targets(
            date_from, date_to, EFFECTIVE_TARGET_STATUSES, branch_id=branch_id
        )
        for (_, _, shift_type), shift_target in shift_targets.items():
            if shift_type in breakdown:
                breakdown[shift_type].target_amount += shift_target

        for item in breakdown.values():
            if item.transactions_count:
                item.average_ticket = item.total_sales / item.transactions_count
            item.achievement_percent = achievement_percent(
                item.total_sales, item.target_amount
            )
        return list(breakdown.values())

    async def get_cashier_performance(
        self,
        date_from: Union[str, datetime.date],
        date_to: Union[str, datetime.date],
        branch_id: Optional[int] = None,
    ) -> List[CashierPerformance]:
        """
        Показатели кассиров за период.

        Доля плана кассира: дневной план филиала делится поровну между
        кассирами, у которых в этот день есть проведенные продажи.
        Кассир, работавший в нескольких филиалах, относится к филиалу
        с наибольшим числом журналов.
        """
        date_from, date_to = validate_date_range(date_from, date_to)
        if branch_id is not None:
            branch_id = validate_branch_id(branch_id)

        facts = await self.sales_repo.get_sales_facts(
            date_from, date_to, branch_id=branch_id
        )
        daily_targets = await self.allocation_repo.get_daily_targets(
            date_from, date_to, EFFECTIVE_TARGET_STATUSES, branch_id=branch_id
        )

        cashiers_by_day: Dict[tuple, set] = defaultdict(set)
        for fact in facts:
            cashiers_by_day[(fact.branch_id, fact.date)].add(fact.cashier_id)

        results: Dict[int, CashierPerformance] = {}
        branch_counter: Dict[int, Counter] = defaultdict(Counter)
        worked_days: Dict[int, set] = defaultdict(set)
        for fact in facts:
            item = results.setdefault(
                fact.cashier_id,
                CashierPerformance(cashier_id=fact.cashier_id, branch_id=fact.branch_id),
            )
            item.total_sales += fact.total_sales
            item.transactions_count += fact.transaction_count
            item.journal_ids.append(fact.id)
            branch_counter[fact.cashier_id][fact.branch_id] += 1
            worked_days[fact.cashier_id].add((fact.branch_id, fact.date))

        for cashier_id, item in results.items():
            item.branch_id = branch_counter[cashier_id].most_common(1)[0][0]
            item.days_worked = len({day for _, day in worked_days[cashier_id]})
            share = 0.0
            for key in worked_days[cashier_id]:
                allocation = daily_targets.get(key)
                if allocation:
                    share += allocation.daily_target / len(cashiers_by_day[key])
            item.target_share = round(share, 2)
            item.achievement_percent = achievement_percent(
                item.total_sales, item.target_share
            )
            if item.transactions_count:
                item.average_ticket = item.total_sales / item.transactions_count

        return sorted(results.values(), key=lambda item: item.cashier_id)
