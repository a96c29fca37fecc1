from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey
from salesboard.core.database import Base


class CashierSalesJournal(Base):
    """Кассовый журнал смены. Ведется внешней подсистемой, здесь только читается."""

    __tablename__ = "cashier_sales_journals"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    journal_date = Column(Date, nullable=False, index=True)
    shift_type = Column(String, nullable=True)
    total_sales = Column(Float, nullable=False, default=0.0)
    transaction_count = Column(Integer, nullable=False, default=0)
    customer_count = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="draft")
