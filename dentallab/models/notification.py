"""
Notification model
"""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, Text, Boolean

from dentallab.database import Base


class Notification(Base):
    """Message derived from order state for lab staff"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign key: notifications outlive the orders they mention
    order_id = Column(Integer, index=True, nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, order_id={self.order_id}, read={self.read})>"
