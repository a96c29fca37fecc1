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


class IncentiveTier(Base):
    __tablename__ = "incentive_tiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    min_achievement_percent = Column(Float, nullable=False)
    max_achievement_percent = Column(Float, nullable=True)
    reward_type = Column(String, nullable=False)
    fixed_amount = Column(Float, nullable=True)
    percentage_rate = Column(Float, nullable=True)
    applicable_to = Column(String, nullable=False, default="all")
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class IncentiveAward(Base):
    __tablename__ = "incentive_awards"

    id = Column(Integer, primary_key=True, index=True)
    award_type = Column(String, nullable=False, default="monthly")
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    target_amount = Column(Float, nullable=False)
    achieved_amount = Column(Float, nullable=False)
    achievement_percent = Column(Float, nullable=False)
    # Ссылка не контролируется: уровень могут удалить позже
    tier_id = Column(Integer, nullable=True)
    calculated_reward = Column(Float, nullable=False)
    adjusted_reward = Column(Float, nullable=True)
    final_reward = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="pending")
    notes = Column(String, nullable=True)
    journal_ids = Column(JSON, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
