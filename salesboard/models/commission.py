from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    func,
)
from salesboard.core.database import Base


class CommissionRate(Base):
    __tablename__ = "commission_rates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    min_sales_amount = Column(Float, nullable=False, default=0.0)
    max_sales_amount = Column(Float, nullable=True)
    commission_type = Column(String, nullable=False)
    fixed_amount = Column(Float, nullable=True)
    percentage_rate = Column(Float, nullable=True)
    applicable_to = Column(String, nullable=False, default="cashier")
    applicable_branches = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)


class CommissionCalculation(Base):
    __tablename__ = "commission_calculations"

    id = Column(Integer, primary_key=True, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    total_sales = Column(Float, nullable=False)
    target_amount = Column(Float, nullable=True)
    achievement_percent = Column(Float, nullable=True)
    rate_id = Column(Integer, nullable=True)
    calculated_commission = Column(Float, nullable=False)
    adjusted_commission = Column(Float, nullable=True)
    final_commission = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="pending")
    journal_ids = Column(JSON, nullable=True)
    notes = Column(String, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
