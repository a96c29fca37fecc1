from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
from salesboard.repositories.branch_repository import BranchRepository
from salesboard.repositories.user_repository import UserRepository
from salesboard.utils.cache import (
    get_cache_key,
    get_cached_data,
    set_cached_data,
    invalidate_cache,
)
import logging

logger = logging.getLogger(__name__)

BRANCHES_CACHE_KEY = get_cache_key("directory", "branches")
CASHIERS_CACHE_KEY = get_cache_key("directory", "cashiers")


class DirectoryService:
    """
    Справочник филиалов и кассиров для подписей в рейтингах и отчетах.

    Справочники ведутся вне движка, здесь они только читаются.
    """

    def __init__(self, session: AsyncSession):
        self.branch_repo = BranchRepository(session)
        self.user_repo = UserRepository(session)

    async def branch_names(self) -> Dict[int, str]:
        """
        Названия филиалов по ID. Берутся из Redis, при промахе - из БД
        с записью в кэш.
        """
        cached = await get_cached_data(BRANCHES_CACHE_KEY)
        if cached is not None:
            return {int(k): v for k, v in cached.items()}

        branches = await self.branch_repo.get_all()
        names = {branch.id: branch.name for branch in branches}
        await set_cached_data(BRANCHES_CACHE_KEY, names)
        return names

    async def cashier_names(self) -> Dict[int, str]:
        """Имена кассиров по ID (кэшируются так же, как филиалы)"""
        cached = await get_cached_data(CASHIERS_CACHE_KEY)
        if cached is not None:
            return {int(k): v for k, v in cached.items()}

        users = await self.user_repo.get_all()
        names = {user.id: user.full_name for user in users}
        await set_cached_data(CASHIERS_CACHE_KEY, names)
        return names

    async def branch_name(self, branch_id: int) -> str:
        names = await self.branch_names()
        return names.get(branch_id, f"Филиал ID:{branch_id}")

    async def invalidate_names(self) -> int:
        """Сбрасывает кэш справочников после их изменения во внешней системе"""
        deleted = await invalidate_cache(pattern=get_cache_key("directory", "*"))
        logger.info(f"Кэш справочников сброшен, удалено ключей: {deleted}")
        return deleted
