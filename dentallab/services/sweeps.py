"""
Periodic maintenance sweeps over the order ledger

Each sweep is idempotent: running it again without state changes creates or
deletes nothing new.
"""

from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.orm import Session

from dentallab.config import settings
from dentallab.constants import STATUS_COMPLETED
from dentallab.models.notification import Notification
from dentallab.models.order import Order
from dentallab.services.notification_service import NotificationService, unpaid_reminder_message

logger = logging.getLogger(__name__)


def check_unpaid_orders(db: Session, now: Optional[datetime] = None) -> int:
    """Remind staff about completed orders still owing money after the grace period

    Returns the number of notifications created.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(days=settings.UNPAID_GRACE_DAYS)
    notifications = NotificationService(db)

    orders = (
        db.query(Order)
        .filter(Order.status == STATUS_COMPLETED, Order.completion_date < cutoff)
        .all()
    )

    created = 0
    for order in orders:
        balance = round(order.balance, 2)
        if balance <= 0:
            continue
        if notifications.has_pending_balance_notice(order.id):
            continue
        notifications.create(order.id, unpaid_reminder_message(order.order_number, order.patient_name, balance))
        created += 1

    logger.info(f"Unpaid order check: {len(orders)} completed orders past grace period, {created} notifications created")
    return created


def purge_old_orders(db: Session, now: Optional[datetime] = None) -> int:
    """Hard-delete completed orders older than the retention period

    Notifications that reference purged orders are left in place.
    Returns the number of orders deleted.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(days=settings.PURGE_AFTER_DAYS)
    orders = (
        db.query(Order)
        .filter(Order.status == STATUS_COMPLETED, Order.completion_date < cutoff)
        .all()
    )
    for order in orders:
        db.delete(order)
    db.commit()

    if orders:
        logger.info(f"Successfully purged {len(orders)} old completed orders.")
    else:
        logger.info("No old completed orders to purge.")
    return len(orders)


def cleanup_old_notifications(db: Session, now: Optional[datetime] = None) -> int:
    """Delete notifications that were read and are older than the retention period"""
    cutoff = (now or datetime.utcnow()) - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)
    deleted = (
        db.query(Notification)
        .filter(Notification.read == True, Notification.created_at < cutoff)  # noqa: E712
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"Notification cleanup removed {deleted} read notifications")
    return deleted
