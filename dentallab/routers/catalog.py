"""
Job catalogue and reporting endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

from dentallab.config import settings
from dentallab.constants import JOB_CATEGORIES, JOB_TYPE_COSTS, JOB_TYPE_PREFIXES
from dentallab.database import get_db
from dentallab.utils.error_handler import DatabaseError
from dentallab.schemas.report import ReportSummary, StatusTotals
from dentallab.services.report_service import ReportService
from dentallab.auth.auth_handler import staff_required

logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter()


@router.get("/job-categories")
@limiter.limit("60/minute")
async def get_job_categories(
    request: Request,
    current_user: dict = Depends(staff_required)
):
    """Job catalogue with per-service prices and order number prefixes"""
    return {
        "job_categories": JOB_CATEGORIES,
        "job_type_costs": JOB_TYPE_COSTS,
        "job_type_prefixes": JOB_TYPE_PREFIXES,
    }


@router.get("/reports/summary", response_model=ReportSummary)
@limiter.limit("20/minute")
async def get_report_summary(
    request: Request,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Income and pending balance, overall and per doctor"""
    try:
        return await ReportService(db).summary()
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to build report summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to build report")


@router.get("/reports/order-status", response_model=list[StatusTotals])
@limiter.limit("20/minute")
async def get_order_status_report(
    request: Request,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    """Order count, cost, paid and balance per status"""
    try:
        return await ReportService(db).order_status()
    except HTTPException:
        raise
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Failed to build order status report: {e}")
        raise HTTPException(status_code=500, detail="Failed to build report")
