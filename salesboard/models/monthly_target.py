from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    ForeignKey,
    DateTime,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from salesboard.core.database import Base


class MonthlyTarget(Base):
    __tablename__ = "branch_monthly_targets"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    year_month = Column(String(7), nullable=False)
    target_amount = Column(Float, nullable=False)
    profile_id = Column(Integer, ForeignKey("target_weight_profiles.id"), nullable=True)
    status = Column(String, nullable=False, default="draft")
    notes = Column(String, nullable=True)
    # Увеличивается при каждой перегенерации распределения
    allocation_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    branch = relationship("Branch", back_populates="monthly_targets")
    profile = relationship("WeightProfile")
    allocations = relationship(
        "DailyAllocation",
        back_populates="monthly_target",
        cascade="all, delete-orphan",
        order_by="DailyAllocation.target_date",
    )

    __table_args__ = (
        UniqueConstraint("branch_id", "year_month", name="_branch_month_target_uc"),
    )
