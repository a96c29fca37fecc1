from sqlalchemy import Column, Integer, String, Float, Boolean, Date, JSON
from salesboard.core.database import Base


class SeasonHoliday(Base):
    __tablename__ = "seasons_holidays"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="season")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    weight_multiplier = Column(Float, nullable=False, default=1.0)
    # None означает "для всех филиалов"
    applicable_branches = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
