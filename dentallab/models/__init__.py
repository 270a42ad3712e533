"""
ORM models; importing this package registers every table on Base.metadata
"""

from dentallab.models.doctor import Doctor
from dentallab.models.order import Order, JobItem, Payment, Note
from dentallab.models.notification import Notification
from dentallab.models.sequence import Sequence
from dentallab.models.user import User
from dentallab.models.activity_log import ActivityLog

__all__ = [
    "Doctor",
    "Order",
    "JobItem",
    "Payment",
    "Note",
    "Notification",
    "Sequence",
    "User",
    "ActivityLog",
]
