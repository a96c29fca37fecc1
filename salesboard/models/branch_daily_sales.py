from sqlalchemy import (
    Column,
    Integer,
    Float,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    UniqueConstraint,
)
from salesboard.core.database import Base


class BranchDailySales(Base):
    """
    Кэш дневных продаж филиала. Пересчитывается целиком по запросу,
    источником истины не является: между пересчетами может устареть.
    """

    __tablename__ = "branch_daily_sales"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    sales_date = Column(Date, nullable=False)
    total_sales = Column(Float, nullable=False, default=0.0)
    transactions_count = Column(Integer, nullable=False, default=0)
    average_ticket = Column(Float, nullable=False, default=0.0)
    cashier_count = Column(Integer, nullable=False, default=0)
    target_amount = Column(Float, nullable=False, default=0.0)
    achievement_amount = Column(Float, nullable=False, default=0.0)
    achievement_percent = Column(Float, nullable=False, default=0.0)
    morning_shift_sales = Column(Float, nullable=False, default=0.0)
    evening_shift_sales = Column(Float, nullable=False, default=0.0)
    night_shift_sales = Column(Float, nullable=False, default=0.0)
    morning_shift_target = Column(Float, nullable=False, default=0.0)
    evening_shift_target = Column(Float, nullable=False, default=0.0)
    night_shift_target = Column(Float, nullable=False, default=0.0)
    journal_ids = Column(JSON, nullable=True)
    computed_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("branch_id", "sales_date", name="_branch_sales_date_uc"),
    )
