"""
Notification sink: derived messages about orders for lab staff
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from typing import Optional
import logging

from dentallab.constants import PENDING_BALANCE_MARKER
from dentallab.models.notification import Notification
from dentallab.utils.error_handler import DatabaseError

logger = logging.getLogger(__name__)


def completed_with_balance_message(order_number: str, balance: float) -> str:
    return f"La orden {order_number} fue completada con un saldo pendiente de {balance:.2f}."


def fully_paid_message(order_number: str) -> str:
    return f"La orden {order_number} ha sido pagada en su totalidad."


def unpaid_reminder_message(order_number: str, patient_name: str, balance: float) -> str:
    return (
        f"La orden {order_number or 'N/A'} para {patient_name or 'N/A'} "
        f"tiene un saldo pendiente de {balance:.2f}."
    )


class NotificationService:
    """Service for notification storage and retrieval"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, order_id: int, message: str) -> Notification:
        """Store a notification; raises DatabaseError on failure"""
        try:
            notification = Notification(order_id=order_id, message=message, read=False)
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
            logger.info(f"Generated notification for order {order_id}")
            return notification
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to create notification: {str(e)}", e)

    def notify(self, order_id: int, message: str) -> Optional[Notification]:
        """Best-effort create used by ledger side effects

        The triggering operation has already been committed; a failure here is
        logged and never reaches the caller.
        """
        try:
            return self.create(order_id, message)
        except Exception as e:
            logger.error(f"Failed to create notification for order {order_id}: {e}")
            try:
                self.db.rollback()
            except SQLAlchemyError as rollback_error:
                logger.error(f"Rollback after notification failure also failed: {rollback_error}")
            return None

    def has_pending_balance_notice(self, order_id: int) -> bool:
        """Whether any notification for the order already mentions a pending balance"""
        # Case-sensitive on every backend; SQLite LIKE is not
        messages = (
            self.db.query(Notification.message)
            .filter(Notification.order_id == order_id)
            .all()
        )
        return any(PENDING_BALANCE_MARKER in message for (message,) in messages)

    async def list_notifications(self, unread_only: bool = False) -> list[Notification]:
        query = self.db.query(Notification)
        if unread_only:
            query = query.filter(Notification.read == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    async def get_notification(self, notification_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )
        return notification

    async def mark_read(self, notification_id: int) -> Notification:
        notification = await self.get_notification(notification_id)
        try:
            notification.read = True
            self.db.commit()
            self.db.refresh(notification)
            return notification
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to mark notification {notification_id} as read: {str(e)}", e)

    async def mark_all_read(self) -> int:
        try:
            updated = (
                self.db.query(Notification)
                .filter(Notification.read == False)  # noqa: E712
                .update({Notification.read: True}, synchronize_session=False)
            )
            self.db.commit()
            return updated
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to mark notifications as read: {str(e)}", e)

    async def delete(self, notification_id: int) -> None:
        notification = await self.get_notification(notification_id)
        try:
            self.db.delete(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to delete notification {notification_id}: {str(e)}", e)

    async def clear_all(self) -> int:
        try:
            deleted = self.db.query(Notification).delete(synchronize_session=False)
            self.db.commit()
            logger.info(f"Cleared {deleted} notifications")
            return deleted
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to clear notifications: {str(e)}", e)
