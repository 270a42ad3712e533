"""
Activity logging service for auditing sign-ins and failures
"""

from sqlalchemy.orm import Session
from typing import Optional
import logging

from dentallab.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Service for logging user activities"""

    def __init__(self, db: Session):
        self.db = db

    async def log_activity(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        username: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Optional[ActivityLog]:
        """Record an activity; failures are logged and never propagate"""
        try:
            activity_log = ActivityLog(
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                username=username,
                ip_address=ip_address,
                user_agent=user_agent,
                error_message=error_message
            )

            self.db.add(activity_log)
            self.db.commit()
            self.db.refresh(activity_log)

            return activity_log

        except Exception as e:
            logger.error(f"Failed to log activity: {e}")
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after activity log failure also failed: {rollback_error}")
            return None

    def get_recent_activities(self, limit: int = 100) -> list[ActivityLog]:
        """Get recent activities"""
        return (
            self.db.query(ActivityLog)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .all()
        )
