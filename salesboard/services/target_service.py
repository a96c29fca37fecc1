import logging
from typing import List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from salesboard.core.constants import TargetStatus
from salesboard.core.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from salesboard.models.monthly_target import MonthlyTarget
from salesboard.repositories.branch_repository import BranchRepository
from salesboard.repositories.monthly_target_repository import MonthlyTargetRepository
from salesboard.repositories.weight_profile_repository import WeightProfileRepository
from salesboard.utils.validators import (
    validate_branch_id,
    validate_target_amount,
    validate_year_month,
)

logger = logging.getLogger(__name__)

# Планы, по которым считается выполнение
EFFECTIVE_TARGET_STATUSES = (TargetStatus.ACTIVE.value, TargetStatus.LOCKED.value)


class TargetService:
    def __init__(self, session: AsyncSession):
        self.repo = MonthlyTargetRepository(session)
        self.branch_repo = BranchRepository(session)
        self.profile_repo = WeightProfileRepository(session)

    async def create_target(
        self,
        branch_id: int,
        year_month: str,
        target_amount: Union[float, str],
        profile_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> MonthlyTarget:
        """
        Создает месячный план филиала в статусе draft.

        Args:
            branch_id: ID филиала
            year_month: Месяц в формате YYYY-MM
            target_amount: Сумма плана (> 0)
            profile_id: Профиль весов, None - профиль по умолчанию
            notes: Комментарий

        Returns:
            MonthlyTarget: Созданный план

        Raises:
            ValidationError: Некорректные данные или план на месяц уже существует
            NotFoundError: Филиал или профиль не найден
        """
        branch_id = validate_branch_id(branch_id)
        year_month = validate_year_month(year_month)
        amount = validate_target_amount(target_amount)

        if await self.branch_repo.get_by_id(branch_id) is None:
            raise NotFoundError(f"Филиал {branch_id} не найден")
        if profile_id is not None and await self.profile_repo.get_by_id(profile_id) is None:
            raise NotFoundError(f"Профиль весов {profile_id} не найден")

        if await self.repo.get_target(branch_id, year_month) is not None:
            raise ValidationError(
                f"План для филиала {branch_id} на {year_month} уже существует"
            )

        target = await self.repo.create_target(
            branch_id, year_month, amount, profile_id=profile_id, notes=notes
        )
        if target is None:
            raise ValidationError(
                f"План для филиала {branch_id} на {year_month} уже существует"
            )
        return target

    async def update_target(
        self,
        target_id: int,
        target_amount: Optional[Union[float, str]] = None,
        profile_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> MonthlyTarget:
        """
        Меняет сумму, профиль или комментарий плана. Уже сгенерированное
        распределение не пересчитывается - для этого нужна перегенерация.
        """
        target = await self.get_target_or_raise(target_id)
        self._ensure_editable(target)

        fields = {}
        if target_amount is not None:
            fields["target_amount"] = validate_target_amount(target_amount)
        if profile_id is not None:
            if await self.profile_repo.get_by_id(profile_id) is None:
                raise NotFoundError(f"Профиль весов {profile_id} не найден")
            fields["profile_id"] = profile_id
        if notes is not None:
            fields["notes"] = notes

        if not fields:
            return target
        return await self.repo.update_target(target, **fields)

    async def lock_target(self, target_id: int) -> MonthlyTarget:
        """Фиксирует активный план: перегенерация и правка после этого запрещены"""
        target = await self.get_target_or_raise(target_id)
        if target.status != TargetStatus.ACTIVE.value:
            raise InvalidStatusTransitionError(
                f"Зафиксировать можно только активный план (статус: {target.status})"
            )
        return await self.repo.update_target(target, status=TargetStatus.LOCKED.value)

    async def archive_target(self, target_id: int) -> MonthlyTarget:
        target = await self.get_target_or_raise(target_id)
        if target.status == TargetStatus.ARCHIVED.value:
            raise InvalidStatusTransitionError(f"План {target_id} уже в архиве")
        return await self.repo.update_target(target, status=TargetStatus.ARCHIVED.value)

    async def delete_target(self, target_id: int) -> None:
        target = await self.get_target_or_raise(target_id)
        await self.repo.delete_target(target)

    async def get_target(self, target_id: int) -> Optional[MonthlyTarget]:
        return await self.repo.get_by_id(target_id)

    async def get_target_or_raise(self, target_id: int) -> MonthlyTarget:
        target = await self.repo.get_by_id(target_id)
        if target is None:
            raise NotFoundError(f"План {target_id} не найден")
        return target

    async def get_effective_target(
        self, branch_id: int, year_month: str
    ) -> Optional[MonthlyTarget]:
        """Действующий (active/locked) план филиала на месяц или None"""
        return await self.repo.get_target(
            branch_id, year_month, statuses=EFFECTIVE_TARGET_STATUSES
        )

    async def list_month_targets(
        self, year_month: str, effective_only: bool = False
    ) -> List[MonthlyTarget]:
        year_month = validate_year_month(year_month)
        statuses = EFFECTIVE_TARGET_STATUSES if effective_only else None
        return await self.repo.get_month_targets(year_month, statuses=statuses)

    async def list_branch_targets(self, branch_id: int) -> List[MonthlyTarget]:
        return await self.repo.get_branch_targets(validate_branch_id(branch_id))

    @staticmethod
    def _ensure_editable(target: MonthlyTarget) -> None:
        if target.status in (TargetStatus.LOCKED.value, TargetStatus.ARCHIVED.value):
            raise InvalidStatusTransitionError(
                f"План {target.id} в статусе {target.status} изменять нельзя"
            )
