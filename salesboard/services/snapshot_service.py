import datetime
import logging
from typing import List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.config import SNAPSHOT_MAX_AGE_SECONDS
from salesboard.core.constants import ShiftType
from salesboard.models.branch_daily_sales import BranchDailySales
from salesboard.repositories.allocation_repository import AllocationRepository
from salesboard.repositories.sales_journal_repository import SalesJournalRepository
from salesboard.repositories.snapshot_repository import SnapshotRepository
from salesboard.services.target_service import EFFECTIVE_TARGET_STATUSES
from salesboard.utils.date_utils import iter_dates, utcnow
from salesboard.utils.rewards import achievement_percent
from salesboard.utils.validators import (
    validate_branch_id,
    validate_date,
    validate_date_range,
)

logger = logging.getLogger(__name__)

_SHIFT_FIELDS = {shift.value: f"{shift.value}_shift_sales" for shift in ShiftType}
_SHIFT_TARGET_FIELDS = {shift.value: f"{shift.value}_shift_target" for shift in ShiftType}


class SnapshotService:
    """
    Снимки дневных продаж филиала (branch_daily_sales).

    Снимок - кэш, а не учетный регистр: автоматически не инвалидируется,
    после проведения новых журналов за дату нужно вызвать refresh_snapshot.
    Время последнего пересчета хранится в computed_at.
    """

    def __init__(self, session: AsyncSession):
        self.repo = SnapshotRepository(session)
        self.sales_repo = SalesJournalRepository(session)
        self.allocation_repo = AllocationRepository(session)

    async def refresh_snapshot(
        self, branch_id: int, sales_date: Union[str, datetime.date]
    ) -> BranchDailySales:
        """
        Полностью пересчитывает снимок филиала за день и сохраняет его
        (перезапись существующего или вставка нового).
        """
        branch_id = validate_branch_id(branch_id)
        sales_date = validate_date(sales_date, "Дата продаж")

        facts = await self.sales_repo.get_sales_facts(
            sales_date, sales_date, branch_id=branch_id
        )
        total_sales = sum(fact.total_sales for fact in facts)
        transactions = sum(fact.transaction_count for fact in facts)

        shift_sales = {field: 0.0 for field in _SHIFT_FIELDS.values()}
        for fact in facts:
            field = _SHIFT_FIELDS.get(fact.shift_type)
            if field:
                shift_sales[field] += fact.total_sales

        daily_targets = await self.allocation_repo.get_daily_targets(
            sales_date, sales_date, EFFECTIVE_TARGET_STATUSES, branch_id=branch_id
        )
        allocation = daily_targets.get((branch_id, sales_date))
        target_amount = allocation.daily_target if allocation else 0.0

        shift_targets = {field: 0.0 for field in _SHIFT_TARGET_FIELDS.values()}
        planned = await self.allocation_repo.get_shift_targets(
            sales_date, sales_date, EFFECTIVE_TARGET_STATUSES, branch_id=branch_id
        )
        for (_, _, shift_type), shift_target in planned.items():
            field = _SHIFT_TARGET_FIELDS.get(shift_type)
            if field:
                shift_targets[field] += shift_target

        snapshot = await self.repo.upsert(
            branch_id,
            sales_date,
            total_sales=total_sales,
            transactions_count=transactions,
            average_ticket=total_sales / transactions if transactions else 0.0,
            cashier_count=len({fact.cashier_id for fact in facts}),
            target_amount=target_amount,
            achievement_amount=total_sales - target_amount,
            achievement_percent=achievement_percent(total_sales, target_amount),
            journal_ids=[fact.id for fact in facts],
            computed_at=utcnow(),
            **shift_sales,
            **shift_targets,
        )
        logger.info(
            f"Пересчитан снимок продаж филиала {branch_id} за {sales_date}: "
            f"{total_sales} ({len(facts)} журналов)"
        )
        return snapshot

    async def refresh_range(
        self,
        branch_id: int,
        date_from: Union[str, datetime.date],
        date_to: Union[str, datetime.date],
    ) -> List[BranchDailySales]:
        date_from, date_to = validate_date_range(date_from, date_to)
        return [
            await self.refresh_snapshot(branch_id, day)
            for day in iter_dates(date_from, date_to)
        ]

    async def get_snapshot(
        self, branch_id: int, sales_date: Union[str, datetime.date]
    ) -> Optional[BranchDailySales]:
        """Снимок как есть, без пересчета. Может быть устаревшим или отсутствовать"""
        return await self.repo.get(
            validate_branch_id(branch_id), validate_date(sales_date, "Дата продаж")
        )

    async def get_or_refresh(
        self,
        branch_id: int,
        sales_date: Union[str, datetime.date],
        max_age: Optional[int] = None,
    ) -> BranchDailySales:
        """Возвращает снимок, пересчитывая его при отсутствии или если он старше max_age секунд"""
        snapshot = await self.get_snapshot(branch_id, sales_date)
        if snapshot is not None and not self.is_stale(snapshot, max_age):
            return snapshot
        if snapshot is not None:
            logger.warning(
                f"Снимок филиала {snapshot.branch_id} за {snapshot.sales_date} "
                f"устарел ({snapshot.computed_at}), пересчет"
            )
        return await self.refresh_snapshot(branch_id, sales_date)

    @staticmethod
    def is_stale(
        snapshot: BranchDailySales,
        max_age: Optional[int] = None,
        now: Optional[datetime.datetime] = None,
    ) -> bool:
        max_age = SNAPSHOT_MAX_AGE_SECONDS if max_age is None else max_age
        now = now or utcnow()
        return (now - snapshot.computed_at).total_seconds() > max_age
