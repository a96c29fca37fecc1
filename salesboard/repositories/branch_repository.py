from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from salesboard.models.branch import Branch


class BranchRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> List[Branch]:
        result = await self.session.execute(select(Branch).order_by(Branch.id))
        return result.scalars().all()

    async def get_by_id(self, branch_id: int) -> Optional[Branch]:
        result = await self.session.execute(select(Branch).filter_by(id=branch_id))
        return result.scalars().first()
