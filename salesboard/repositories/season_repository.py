import datetime
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from salesboard.models.season import SeasonHoliday


class SeasonRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **fields) -> SeasonHoliday:
        season = SeasonHoliday(**fields)
        self.session.add(season)
        await self.session.commit()
        await self.session.refresh(season)
        return season

    async def get_active_between(
        self, date_from: datetime.date, date_to: datetime.date
    ) -> List[SeasonHoliday]:
        """Активные сезоны, пересекающиеся с периодом"""
        result = await self.session.execute(
            select(SeasonHoliday)
            .where(
                SeasonHoliday.is_active.is_(True),
                SeasonHoliday.start_date <= date_to,
                SeasonHoliday.end_date >= date_from,
            )
            .order_by(SeasonHoliday.start_date)
        )
        return result.scalars().all()
