import logging
from typing import List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from salesboard.core.database import AsyncSession
from salesboard.models.monthly_target import MonthlyTarget

logger = logging.getLogger(__name__)


class MonthlyTargetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_target(
        self,
        branch_id: int,
        year_month: str,
        target_amount: float,
        profile_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Optional[MonthlyTarget]:
        """Создает план филиала на месяц. При нарушении уникальности возвращает None"""
        try:
            target = MonthlyTarget(
                branch_id=branch_id,
                year_month=year_month,
                target_amount=target_amount,
                profile_id=profile_id,
                notes=notes,
                status="draft",
            )
            self.session.add(target)
            await self.session.commit()
            await self.session.refresh(target)
            logger.info(
                f"Создан план для филиала {branch_id} на {year_month}: {target_amount}"
            )
            return target
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"Ошибка создания плана: {e}")
            return None

    async def get_by_id(self, target_id: int) -> Optional[MonthlyTarget]:
        result = await self.session.execute(
            select(MonthlyTarget).where(MonthlyTarget.id == target_id)
        )
        return result.scalar_one_or_none()

    async def get_target(
        self,
        branch_id: int,
        year_month: str,
        statuses: Optional[Sequence[str]] = None,
    ) -> Optional[MonthlyTarget]:
        """Получает план филиала на месяц, при необходимости с фильтром по статусу"""
        query = select(MonthlyTarget).where(
            MonthlyTarget.branch_id == branch_id,
            MonthlyTarget.year_month == year_month,
        )
        if statuses:
            query = query.where(MonthlyTarget.status.in_(list(statuses)))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_month_targets(
        self, year_month: str, statuses: Optional[Sequence[str]] = None
    ) -> List[MonthlyTarget]:
        query = select(MonthlyTarget).where(MonthlyTarget.year_month == year_month)
        if statuses:
            query = query.where(MonthlyTarget.status.in_(list(statuses)))
        result = await self.session.execute(query.order_by(MonthlyTarget.branch_id))
        return result.scalars().all()

    async def get_branch_targets(self, branch_id: int) -> List[MonthlyTarget]:
        result = await self.session.execute(
            select(MonthlyTarget)
            .where(MonthlyTarget.branch_id == branch_id)
            .order_by(MonthlyTarget.year_month)
        )
        return result.scalars().all()

    async def update_target(self, target: MonthlyTarget, **fields) -> MonthlyTarget:
        try:
            for name, value in fields.items():
                setattr(target, name, value)
            self.session.add(target)
            await self.session.commit()
            await self.session.refresh(target)
            logger.info(f"Обновлен план {target.id}: {fields}")
            return target
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка обновления плана {target.id}: {e}")
            raise

    async def delete_target(self, target: MonthlyTarget) -> None:
        """Удаляет план вместе с дневным распределением"""
        try:
            await self.session.delete(target)
            await self.session.commit()
            logger.info(
                f"Удален план для филиала {target.branch_id} на {target.year_month}"
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка удаления плана: {e}")
            raise
