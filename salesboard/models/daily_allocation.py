from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    Date,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from salesboard.core.database import Base


class DailyAllocation(Base):
    __tablename__ = "target_daily_allocations"

    id = Column(Integer, primary_key=True, index=True)
    monthly_target_id = Column(
        Integer,
        ForeignKey("branch_monthly_targets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_date = Column(Date, nullable=False)
    weight_percent = Column(Float, nullable=False)
    daily_target = Column(Float, nullable=False)
    is_holiday = Column(Boolean, nullable=False, default=False)
    is_manual_override = Column(Boolean, nullable=False, default=False)
    override_reason = Column(String, nullable=True)

    monthly_target = relationship("MonthlyTarget", back_populates="allocations")
    shifts = relationship(
        "ShiftAllocation",
        back_populates="daily_allocation",
        cascade="all, delete-orphan",
        order_by="ShiftAllocation.id",
    )

    __table_args__ = (
        UniqueConstraint("monthly_target_id", "target_date", name="_target_date_uc"),
    )
