from sqlalchemy import Column, Integer, String, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from salesboard.core.database import Base


class ShiftAllocation(Base):
    """Доля дневного плана, приходящаяся на смену"""

    __tablename__ = "target_shift_allocations"

    id = Column(Integer, primary_key=True, index=True)
    daily_allocation_id = Column(
        Integer,
        ForeignKey("target_daily_allocations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shift_type = Column(String, nullable=False)
    shift_target = Column(Float, nullable=False)
    shift_weight_percent = Column(Float, nullable=False)
    notes = Column(String, nullable=True)

    daily_allocation = relationship("DailyAllocation", back_populates="shifts")

    __table_args__ = (
        UniqueConstraint("daily_allocation_id", "shift_type", name="_allocation_shift_uc"),
    )
