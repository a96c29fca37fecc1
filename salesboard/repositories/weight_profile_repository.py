import logging
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from salesboard.models.weight_profile import WeightProfile

logger = logging.getLogger(__name__)


class WeightProfileRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **fields) -> WeightProfile:
        profile = WeightProfile(**fields)
        self.session.add(profile)
        await self.session.commit()
        await self.session.refresh(profile)
        return profile

    async def get_by_id(self, profile_id: int) -> Optional[WeightProfile]:
        result = await self.session.execute(
            select(WeightProfile).where(WeightProfile.id == profile_id)
        )
        return result.scalar_one_or_none()

    async def get_default(self) -> Optional[WeightProfile]:
        result = await self.session.execute(
            select(WeightProfile)
            .where(WeightProfile.is_default.is_(True), WeightProfile.is_active.is_(True))
            .order_by(WeightProfile.id)
        )
        return result.scalars().first()

    async def get_all(self) -> List[WeightProfile]:
        result = await self.session.execute(
            select(WeightProfile).order_by(WeightProfile.id)
        )
        return result.scalars().all()

    async def update(self, profile: WeightProfile, **fields) -> WeightProfile:
        for name, value in fields.items():
            setattr(profile, name, value)
        self.session.add(profile)
        await self.session.commit()
        await self.session.refresh(profile)
        return profile

    async def set_default(self, profile_id: int) -> None:
        """
        Делает профиль профилем по умолчанию. Снятие флага с остальных
        профилей и установка нового выполняются одной транзакцией.
        """
        try:
            await self.session.execute(
                update(WeightProfile)
                .where(WeightProfile.id != profile_id)
                .values(is_default=False)
            )
            await self.session.execute(
                update(WeightProfile)
                .where(WeightProfile.id == profile_id)
                .values(is_default=True)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Ошибка смены профиля по умолчанию: {e}")
            raise
