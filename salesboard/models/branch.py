from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from salesboard.core.database import Base


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    cashiers = relationship("User", back_populates="branch")
    monthly_targets = relationship("MonthlyTarget", back_populates="branch")
