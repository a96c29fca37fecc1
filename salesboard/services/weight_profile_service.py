import logging
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.constants import WEEKDAY_WEIGHT_FIELDS
from salesboard.core.exceptions import NoProfileError, NotFoundError, ValidationError
from salesboard.models.monthly_target import MonthlyTarget
from salesboard.models.weight_profile import WeightProfile
from salesboard.repositories.weight_profile_repository import WeightProfileRepository
from salesboard.utils.validators import validate_weights

logger = logging.getLogger(__name__)


class WeightProfileService:
    def __init__(self, session: AsyncSession):
        self.repo = WeightProfileRepository(session)

    async def create_profile(
        self,
        name: str,
        weights: Sequence[float],
        is_default: bool = False,
        description: Optional[str] = None,
    ) -> WeightProfile:
        """
        Создает профиль весов дней недели.

        Args:
            name: Название профиля
            weights: Семь весов в порядке воскресенье ... суббота
            is_default: Сделать профилем по умолчанию
            description: Описание

        Returns:
            WeightProfile: Созданный профиль
        """
        if not name or not name.strip():
            raise ValidationError("Название профиля не может быть пустым")

        values = validate_weights(weights)
        profile = await self.repo.create(
            name=name.strip(),
            description=description,
            is_default=False,
            **dict(zip(WEEKDAY_WEIGHT_FIELDS, values)),
        )
        logger.info(f"Создан профиль весов {profile.id} '{profile.name}': {values}")

        if is_default:
            await self.set_default_profile(profile.id)
        return profile

    async def update_weights(
        self, profile_id: int, weights: Sequence[float]
    ) -> WeightProfile:
        profile = await self._get_or_raise(profile_id)
        values = validate_weights(weights)
        return await self.repo.update(profile, **dict(zip(WEEKDAY_WEIGHT_FIELDS, values)))

    async def deactivate_profile(self, profile_id: int) -> WeightProfile:
        profile = await self._get_or_raise(profile_id)
        return await self.repo.update(profile, is_active=False, is_default=False)

    async def set_default_profile(self, profile_id: int) -> WeightProfile:
        """Назначает профиль по умолчанию, флаг с прежнего снимается в той же транзакции"""
        profile = await self._get_or_raise(profile_id)
        if not profile.is_active:
            raise ValidationError("Неактивный профиль не может быть профилем по умолчанию")

        await self.repo.set_default(profile_id)
        logger.info(f"Профиль {profile_id} назначен профилем по умолчанию")
        return await self.repo.get_by_id(profile_id)

    async def get_default_profile(self) -> Optional[WeightProfile]:
        return await self.repo.get_default()

    async def get_profile(self, profile_id: int) -> Optional[WeightProfile]:
        return await self.repo.get_by_id(profile_id)

    async def list_profiles(self) -> List[WeightProfile]:
        return await self.repo.get_all()

    async def resolve_profile(self, target: MonthlyTarget) -> WeightProfile:
        """
        Профиль для распределения плана: явно указанный в плане (если активен),
        иначе профиль по умолчанию.

        Raises:
            NoProfileError: Если нет ни того, ни другого
        """
        if target.profile_id is not None:
            profile = await self.repo.get_by_id(target.profile_id)
            if profile and profile.is_active:
                return profile
            logger.warning(
                f"Профиль {target.profile_id} плана {target.id} недоступен, "
                f"используется профиль по умолчанию"
            )

        profile = await self.repo.get_default()
        if profile is None:
            raise NoProfileError(
                f"Для плана {target.id} не задан профиль весов и нет профиля по умолчанию"
            )
        return profile

    async def _get_or_raise(self, profile_id: int) -> WeightProfile:
        profile = await self.repo.get_by_id(profile_id)
        if profile is None:
            raise NotFoundError(f"Профиль весов {profile_id} не найден")
        return profile
