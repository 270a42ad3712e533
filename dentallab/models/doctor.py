"""
Doctor directory model
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from dentallab.database import Base


class Doctor(Base):
    """Doctor placing orders with the lab"""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(20), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)

    orders = relationship("Order", back_populates="doctor")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.title, self.first_name, self.last_name) if part)

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.full_name}')>"
