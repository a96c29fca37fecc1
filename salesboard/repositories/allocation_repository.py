import datetime
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from salesboard.core.database import AsyncSession
from salesboard.models.daily_allocation import DailyAllocation
from salesboard.models.monthly_target import MonthlyTarget
from salesboard.models.shift_allocation import ShiftAllocation

logger = logging.getLogger(__name__)


class AllocationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, allocation_id: int) -> Optional[DailyAllocation]:
        result = await self.session.execute(
            select(DailyAllocation).where(DailyAllocation.id == allocation_id)
        )
        return result.scalar_one_or_none()

    async def get_for_target(self, target_id: int) -> List[DailyAllocation]:
        result = await self.session.execute(
            select(DailyAllocation)
            .where(DailyAllocation.monthly_target_id == target_id)
            .order_by(DailyAllocation.target_date)
        )
        return result.scalars().all()

    async def get_daily_targets(
        self,
        date_from: datetime.date,
        date_to: datetime.date,
        target_statuses: Sequence[str],
        branch_id: Optional[int] = None,
    ) -> Dict[Tuple[int, datetime.date], DailyAllocation]:
        """
        Дневные планы за период по действующим месячным планам.

        Returns:
            Dict[Tuple[int, date], DailyAllocation]: Ключ - (ID филиала, дата)
        """
        query = (
            select(MonthlyTarget.branch_id, DailyAllocation)
            .join(MonthlyTarget, DailyAllocation.monthly_target_id == MonthlyTarget.id)
            .where(
                DailyAllocation.target_date >= date_from,
                DailyAllocation.target_date <= date_to,
                MonthlyTarget.status.in_(list(target_statuses)),
            )
        )
        if branch_id is not None:
            query = query.where(MonthlyTarget.branch_id == branch_id)

        result = await self.session.execute(query)
        return {
            (row_branch_id, allocation.target_date): allocation
            for row_branch_id, allocation in result.all()
        }

    async def get_shifts_for_target(self, target_id: int) -> List[ShiftAllocation]:
        result = await self.session.execute(
            select(ShiftAllocation)
            .join(DailyAllocation, ShiftAllocation.daily_allocation_id == DailyAllocation.id)
            .where(DailyAllocation.monthly_target_id == target_id)
            .order_by(DailyAllocation.target_date, ShiftAllocation.id)
        )
        return result.scalars().all()

    async def get_shift_targets(
        self,
        date_from: datetime.date,
        date_to: datetime.date,
        target_statuses: Sequence[str],
        branch_id: Optional[int] = None,
    ) -> Dict[Tuple[int, datetime.date, str], float]:
        """
        Планы смен за период по действующим месячным планам.

        Returns:
            Dict[Tuple[int, date, str], float]: Ключ - (ID филиала, дата, смена)
        """
        query = (
            select(
                MonthlyTarget.branch_id,
                DailyAllocation.target_date,
                ShiftAllocation.shift_type,
                ShiftAllocation.shift_target,
            )
            .join(DailyAllocation, ShiftAllocation.daily_allocation_id == DailyAllocation.id)
            .join(MonthlyTarget, DailyAllocation.monthly_target_id == MonthlyTarget.id)
            .where(
                DailyAllocation.target_date >= date_from,
                DailyAllocation.target_date <= date_to,
                MonthlyTarget.status.in_(list(target_statuses)),
            )
        )
        if branch_id is not None:
            query = query.where(MonthlyTarget.branch_id == branch_id)

        result = await self.session.execute(query)
        return {
            (row_branch_id, day, shift_type): shift_target
            for row_branch_id, day, shift_type, shift_target in result.all()
        }

    async def replace_for_target(
        self,
        target: MonthlyTarget,
        rows: Iterable[dict],
        keep_ids: Iterable[int] = (),
    ) -> List[DailyAllocation]:
        """
        Заменяет дневное распределение плана одной транзакцией:
        удаление старых строк (кроме keep_ids) вместе с их сменами, вставка
        новых, перевод плана в статус active и увеличение allocation_version.
        Читатели не видят промежуточного состояния без строк. Планы смен
        нового дня передаются в строке под ключом "shifts".
        """
        keep_ids = set(keep_ids)
        try:
            result = await self.session.execute(
                select(DailyAllocation.id).where(
                    DailyAllocation.monthly_target_id == target.id
                )
            )
            stale_ids = [i for i in result.scalars().all() if i not in keep_ids]
            if stale_ids:
                await self.session.execute(
                    delete(ShiftAllocation).where(
                        ShiftAllocation.daily_allocation_id.in_(stale_ids)
                    )
                )
                await self.session.execute(
                    delete(DailyAllocation).where(DailyAllocation.id.in_(stale_ids))
                )

            allocations, shift_rows = [], []
            for row in rows:
                row = dict(row)
                shift_rows.append(row.pop("shifts", []))
                allocations.append(DailyAllocation(monthly_target_id=target.id, **row))
            self.session.add_all(allocations)
            await self.session.flush()
            self.session.add_all(
                ShiftAllocation(daily_allocation_id=allocation.id, **shift)
                for allocation, shifts in zip(allocations, shift_rows)
                for shift in shifts
            )

            target.status = "active"
            target.allocation_version = (target.allocation_version or 0) + 1
            self.session.add(target)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка перегенерации распределения плана {target.id}: {e}")
            raise

        return await self.get_for_target(target.id)

    async def save(
        self, allocation: DailyAllocation, shifts: Optional[Iterable[dict]] = None
    ) -> DailyAllocation:
        """Сохраняет день; при переданных shifts планы смен дня заменяются"""
        try:
            if shifts is not None:
                await self.session.execute(
                    delete(ShiftAllocation).where(
                        ShiftAllocation.daily_allocation_id == allocation.id
                    )
                )
                self.session.add_all(
                    ShiftAllocation(daily_allocation_id=allocation.id, **shift)
                    for shift in shifts
                )
            self.session.add(allocation)
            await self.session.commit()
            await self.session.refresh(allocation)
            return allocation
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка сохранения дня {allocation.id}: {e}")
            raise
