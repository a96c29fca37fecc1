import datetime
import logging
from typing import List, Optional
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from salesboard.core.database import AsyncSession
from salesboard.models.commission import CommissionCalculation, CommissionRate

logger = logging.getLogger(__name__)


class CommissionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_rate(self, **fields) -> CommissionRate:
        rate = CommissionRate(**fields)
        self.session.add(rate)
        await self.session.commit()
        await self.session.refresh(rate)
        return rate

    async def get_rate(self, rate_id: int) -> Optional[CommissionRate]:
        result = await self.session.execute(
            select(CommissionRate).where(CommissionRate.id == rate_id)
        )
        return result.scalar_one_or_none()

    async def get_rates(self, active_only: bool = True) -> List[CommissionRate]:
        query = select(CommissionRate).order_by(
            CommissionRate.min_sales_amount, CommissionRate.id
        )
        if active_only:
            query = query.where(CommissionRate.is_active.is_(True))
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_valid_rates(
        self, on_date: datetime.date, applicable_to: str
    ) -> List[CommissionRate]:
        """Активные тарифы, действующие на дату, для кассиров/филиалов или для всех"""
        result = await self.session.execute(
            select(CommissionRate)
            .where(
                CommissionRate.is_active.is_(True),
                CommissionRate.applicable_to.in_([applicable_to, "all"]),
                or_(CommissionRate.valid_from.is_(None), CommissionRate.valid_from <= on_date),
                or_(CommissionRate.valid_to.is_(None), CommissionRate.valid_to >= on_date),
            )
            .order_by(CommissionRate.min_sales_amount, CommissionRate.id)
        )
        return result.scalars().all()

    async def get_calculation(self, calculation_id: int) -> Optional[CommissionCalculation]:
        result = await self.session.execute(
            select(CommissionCalculation).where(
                CommissionCalculation.id == calculation_id
            )
        )
        return result.scalar_one_or_none()

    async def find_calculation(
        self,
        cashier_id: int,
        period_start: datetime.date,
        period_end: datetime.date,
    ) -> Optional[CommissionCalculation]:
        result = await self.session.execute(
            select(CommissionCalculation)
            .where(
                CommissionCalculation.cashier_id == cashier_id,
                CommissionCalculation.period_start == period_start,
                CommissionCalculation.period_end == period_end,
            )
            .order_by(CommissionCalculation.id)
        )
        return result.scalars().first()

    async def get_calculations(
        self,
        status: Optional[str] = None,
        branch_id: Optional[int] = None,
        cashier_id: Optional[int] = None,
    ) -> List[CommissionCalculation]:
        query = select(CommissionCalculation)
        if status:
            query = query.where(CommissionCalculation.status == status)
        if branch_id is not None:
            query = query.where(CommissionCalculation.branch_id == branch_id)
        if cashier_id is not None:
            query = query.where(CommissionCalculation.cashier_id == cashier_id)
        result = await self.session.execute(query.order_by(CommissionCalculation.id))
        return result.scalars().all()

    async def replace_calculation(
        self,
        new_calculation: Optional[CommissionCalculation],
        stale: Optional[CommissionCalculation],
    ) -> Optional[CommissionCalculation]:
        try:
            if stale is not None:
                await self.session.delete(stale)
            if new_calculation is not None:
                self.session.add(new_calculation)
            await self.session.commit()
            if new_calculation is not None:
                await self.session.refresh(new_calculation)
            return new_calculation
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка сохранения расчета комиссии: {e}")
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
