"""
Notification endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

from dentallab.config import settings
from dentallab.database import get_db
from dentallab.utils.error_handler import DatabaseError
from dentallab.schemas.notification import NotificationResponse
from dentallab.services.notification_service import NotificationService
from dentallab.auth.auth_handler import staff_required, delete_permitted

logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter()


@router.get("/", response_model=list[NotificationResponse])
@limiter.limit("60/minute")
async def get_notifications(
    request: Request,
    unread_only: bool = Query(False, description="Only return unread notifications"),
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """List notifications, newest first"""
    try:
        return await NotificationService(db).list_notifications(unread_only)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to get notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve notifications")


@router.put("/read-all")
@limiter.limit("30/minute")
async def mark_all_notifications_read(
    request: Request,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Mark every notification as read"""
    try:
        updated = await NotificationService(db).mark_all_read()
        return {"message": "All notifications marked as read", "updated": updated}
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to mark notifications as read: {e}")
        raise HTTPException(status_code=500, detail="Failed to mark notifications as read")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
@limiter.limit("60/minute")
async def mark_notification_read(
    request: Request,
    notification_id: int,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Mark one notification as read"""
    try:
        return await NotificationService(db).mark_read(notification_id)
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to mark notification {notification_id} as read: {e}")
        raise HTTPException(status_code=500, detail="Failed to mark notification as read")


@router.delete("/{notification_id}")
@limiter.limit("30/minute")
async def delete_notification(
    request: Request,
    notification_id: int,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Delete one notification"""
    try:
        await NotificationService(db).delete(notification_id)
        return {"message": "Notification deleted successfully"}
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete notification {notification_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete notification")


@router.delete("/")
@limiter.limit("10/minute")
async def clear_notifications(
    request: Request,
    current_user: dict = Depends(delete_permitted),
    db: Session = Depends(get_db)
):
    """Delete every notification"""
    try:
        deleted = await NotificationService(db).clear_all()
        return {"message": "All notifications deleted", "deleted": deleted}
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to clear notifications: {e}")
        raise HTTPException(status_code=500, detail="Failed to clear notifications")
