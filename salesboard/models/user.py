from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from salesboard.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="cashier")
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)

    branch = relationship("Branch", back_populates="cashiers")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
