import datetime
from dataclasses import dataclass
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from salesboard.core.constants import ELIGIBLE_JOURNAL_STATUSES
from salesboard.models.sales_journal import CashierSalesJournal


@dataclass(frozen=True)
class SalesFact:
    id: int
    date: datetime.date
    shift_type: Optional[str]
    total_sales: float
    transaction_count: int
    cashier_id: int
    branch_id: int
    status: str


class SalesJournalRepository:
    """
    Чтение кассовых журналов. Журналы ведет внешняя подсистема,
    модуль планов их не изменяет.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_sales_facts(
        self,
        date_from: datetime.date,
        date_to: datetime.date,
        branch_id: Optional[int] = None,
        cashier_id: Optional[int] = None,
        statuses: Sequence[str] = ELIGIBLE_JOURNAL_STATUSES,
    ) -> List[SalesFact]:
        """
        Возвращает продажи за период [date_from, date_to] с указанными статусами.

        Args:
            date_from: Начало периода (включительно)
            date_to: Конец периода (включительно)
            branch_id: Фильтр по филиалу
            cashier_id: Фильтр по кассиру
            statuses: Допустимые статусы журналов

        Returns:
            List[SalesFact]: Продажи, упорядоченные по дате и ID журнала
        """
        query = select(CashierSalesJournal).where(
            CashierSalesJournal.journal_date >= date_from,
            CashierSalesJournal.journal_date <= date_to,
            CashierSalesJournal.status.in_(list(statuses)),
        )
        if branch_id is not None:
            query = query.where(CashierSalesJournal.branch_id == branch_id)
        if cashier_id is not None:
            query = query.where(CashierSalesJournal.cashier_id == cashier_id)
        query = query.order_by(
            CashierSalesJournal.journal_date, CashierSalesJournal.id
        )

        result = await self.session.execute(query)
        return [
            SalesFact(
                id=journal.id,
                date=journal.journal_date,
                shift_type=journal.shift_type,
                total_sales=journal.total_sales or 0.0,
                transaction_count=journal.transaction_count or 0,
                cashier_id=journal.cashier_id,
                branch_id=journal.branch_id,
                status=journal.status,
            )
            for journal in result.scalars().all()
        ]
