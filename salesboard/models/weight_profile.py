from sqlalchemy import Column, Integer, String, Float, Boolean
from salesboard.core.database import Base
from salesboard.core.constants import WEEKDAY_WEIGHT_FIELDS


class WeightProfile(Base):
    __tablename__ = "target_weight_profiles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    sunday_weight = Column(Float, nullable=False, default=100.0)
    monday_weight = Column(Float, nullable=False, default=100.0)
    tuesday_weight = Column(Float, nullable=False, default=100.0)
    wednesday_weight = Column(Float, nullable=False, default=100.0)
    thursday_weight = Column(Float, nullable=False, default=130.0)
    friday_weight = Column(Float, nullable=False, default=130.0)
    saturday_weight = Column(Float, nullable=False, default=100.0)

    @property
    def weights(self) -> list:
        """Веса в порядке воскресенье ... суббота"""
        return [getattr(self, field) for field in WEEKDAY_WEIGHT_FIELDS]
