"""
Order ledger models: orders, their job items, payments and notes
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from dentallab.constants import STATUS_PENDING, get_job_type_category
from dentallab.database import Base


class Order(Base):
    """Order entity model"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(20), unique=True, index=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    patient_name = Column(String(150), nullable=False)
    cost = Column(Float, nullable=False)
    status = Column(String(20), default=STATUS_PENDING, index=True, nullable=False)
    priority = Column(String(20), default="Normal", nullable=False)
    case_description = Column(Text, nullable=True)
    creation_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    completion_date = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)

    doctor = relationship("Doctor", back_populates="orders")
    job_items = relationship(
        "JobItem", back_populates="order", cascade="all, delete-orphan",
        order_by="JobItem.position"
    )
    payments = relationship(
        "Payment", back_populates="order", cascade="all, delete-orphan",
        order_by="Payment.id"
    )
    notes = relationship(
        "Note", back_populates="order", cascade="all, delete-orphan",
        order_by="Note.id"
    )

    @property
    def paid_amount(self) -> float:
        return sum(payment.amount for payment in self.payments)

    @property
    def balance(self) -> float:
        """Amount still owed; always recomputed from the payments list"""
        return self.cost - self.paid_amount

    @property
    def category(self) -> str:
        return self.job_items[0].category if self.job_items else ""

    def __repr__(self):
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.status}')>"


class JobItem(Base):
    """A single billable piece of work within an order"""
    __tablename__ = "order_job_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    job_type = Column(String(200), nullable=False)
    category_name = Column(String(100), nullable=True)
    unit_cost = Column(Float, nullable=False)
    units = Column(Integer, default=1, nullable=False)

    order = relationship("Order", back_populates="job_items")

    @property
    def category(self) -> str:
        return self.category_name or get_job_type_category(self.job_type)

    @property
    def subtotal(self) -> float:
        return self.unit_cost * self.units


class Payment(Base):
    """Partial payment recorded against an order"""
    __tablename__ = "order_payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    description = Column(Text, nullable=True)

    order = relationship("Order", back_populates="payments")


class Note(Base):
    """Free-text annotation on an order"""
    __tablename__ = "order_notes"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    text = Column(Text, nullable=False)
    author = Column(String(100), nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="notes")
