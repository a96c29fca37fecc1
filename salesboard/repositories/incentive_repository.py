import datetime
import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from salesboard.core.database import AsyncSession
from salesboard.models.incentive import IncentiveAward, IncentiveTier

logger = logging.getLogger(__name__)


class IncentiveRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_tier(self, **fields) -> IncentiveTier:
        tier = IncentiveTier(**fields)
        self.session.add(tier)
        await self.session.commit()
        await self.session.refresh(tier)
        return tier

    async def get_tier(self, tier_id: int) -> Optional[IncentiveTier]:
        result = await self.session.execute(
            select(IncentiveTier).where(IncentiveTier.id == tier_id)
        )
        return result.scalar_one_or_none()

    async def get_tiers(self, active_only: bool = True) -> List[IncentiveTier]:
        query = select(IncentiveTier).order_by(
            IncentiveTier.sort_order, IncentiveTier.min_achievement_percent
        )
        if active_only:
            query = query.where(IncentiveTier.is_active.is_(True))
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_award(self, award_id: int) -> Optional[IncentiveAward]:
        result = await self.session.execute(
            select(IncentiveAward).where(IncentiveAward.id == award_id)
        )
        return result.scalar_one_or_none()

    async def find_award(
        self,
        period_start: datetime.date,
        period_end: datetime.date,
        branch_id: Optional[int] = None,
        cashier_id: Optional[int] = None,
        award_type: str = "monthly",
    ) -> Optional[IncentiveAward]:
        """Ищет награду того же субъекта за тот же период"""
        query = select(IncentiveAward).where(
            IncentiveAward.period_start == period_start,
            IncentiveAward.period_end == period_end,
            IncentiveAward.award_type == award_type,
        )
        if cashier_id is None:
            query = query.where(
                IncentiveAward.cashier_id.is_(None),
                IncentiveAward.branch_id == branch_id,
            )
        else:
            query = query.where(IncentiveAward.cashier_id == cashier_id)
        result = await self.session.execute(query.order_by(IncentiveAward.id))
        return result.scalars().first()

    async def get_awards(
        self,
        status: Optional[str] = None,
        branch_id: Optional[int] = None,
        period_start: Optional[datetime.date] = None,
        period_end: Optional[datetime.date] = None,
    ) -> List[IncentiveAward]:
        query = select(IncentiveAward)
        if status:
            query = query.where(IncentiveAward.status == status)
        if branch_id is not None:
            query = query.where(IncentiveAward.branch_id == branch_id)
        if period_start is not None:
            query = query.where(IncentiveAward.period_start >= period_start)
        if period_end is not None:
            query = query.where(IncentiveAward.period_end <= period_end)
        result = await self.session.execute(query.order_by(IncentiveAward.id))
        return result.scalars().all()

    async def replace_award(
        self, new_award: Optional[IncentiveAward], stale: Optional[IncentiveAward]
    ) -> Optional[IncentiveAward]:
        """Удаляет устаревшую награду в статусе pending и сохраняет новую одной транзакцией"""
        try:
            if stale is not None:
                await self.session.delete(stale)
            if new_award is not None:
                self.session.add(new_award)
            await self.session.commit()
            if new_award is not None:
                await self.session.refresh(new_award)
            return new_award
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка сохранения награды: {e}")
            raise

    async def save(self, obj):
        try:
            self.session.add(obj)
            await self.session.commit()
            await self.session.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка сохранения {obj.__class__.__name__} {obj.id}: {e}")
            raise
