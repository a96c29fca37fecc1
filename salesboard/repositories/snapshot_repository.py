import datetime
import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from salesboard.core.database import AsyncSession
from salesboard.models.branch_daily_sales import BranchDailySales

logger = logging.getLogger(__name__)


class SnapshotRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self, branch_id: int, sales_date: datetime.date
    ) -> Optional[BranchDailySales]:
        result = await self.session.execute(
            select(BranchDailySales).where(
                BranchDailySales.branch_id == branch_id,
                BranchDailySales.sales_date == sales_date,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self, branch_id: int, sales_date: datetime.date, **values
    ) -> BranchDailySales:
        """Перезаписывает снимок за день или создает новый"""
        try:
            snapshot = await self.get(branch_id, sales_date)
            if snapshot is None:
                snapshot = BranchDailySales(branch_id=branch_id, sales_date=sales_date)
            for name, value in values.items():
                setattr(snapshot, name, value)
            self.session.add(snapshot)
            await self.session.commit()
            await self.session.refresh(snapshot)
            return snapshot
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Ошибка сохранения снимка продаж филиала {branch_id} за {sales_date}: {e}"
            )
            raise
