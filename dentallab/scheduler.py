"""
In-process background scheduler for the ledger sweeps
"""

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from dentallab.config import settings
from dentallab.database import SessionLocal
from dentallab.services.sweeps import check_unpaid_orders, purge_old_orders, cleanup_old_notifications
from dentallab.utils.error_handler import DatabaseManager

logger = logging.getLogger(__name__)


def job_listener(event):
    """Log the outcome of every scheduled job run"""
    if event.exception:
        logger.error(f"Job {event.job_id} failed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully")


def run_sweep(sweep: Callable, session_factory=SessionLocal):
    """Run one sweep in its own session; errors are logged and wait for the next tick"""
    try:
        with DatabaseManager(session_factory) as db:
            return sweep(db)
    except Exception as e:
        logger.error(f"Sweep {sweep.__name__} failed: {e}", exc_info=True)
        return None


def run_unpaid_check():
    return run_sweep(check_unpaid_orders)


def run_order_purge():
    return run_sweep(purge_old_orders)


def run_notification_cleanup():
    return run_sweep(cleanup_old_notifications)


def create_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler(
        job_defaults={
            'coalesce': True,  # Missed runs collapse into one
            'max_instances': 1,
            'misfire_grace_time': 300
        }
    )
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    scheduler.add_job(
        run_unpaid_check,
        trigger=IntervalTrigger(hours=settings.UNPAID_CHECK_INTERVAL_HOURS),
        id='unpaid_order_check',
        name='Unpaid Completed Order Check',
        replace_existing=True
    )
    scheduler.add_job(
        run_order_purge,
        trigger=IntervalTrigger(hours=settings.PURGE_INTERVAL_HOURS),
        id='old_order_purge',
        name='Completed Order Purge',
        replace_existing=True
    )
    scheduler.add_job(
        run_notification_cleanup,
        trigger=IntervalTrigger(hours=settings.NOTIFICATION_CLEANUP_INTERVAL_HOURS),
        id='notification_cleanup',
        name='Read Notification Cleanup',
        replace_existing=True
    )
    return scheduler


def start_scheduler() -> BackgroundScheduler:
    scheduler = create_scheduler()
    scheduler.start()
    logger.info(
        f"Scheduler started: unpaid check every {settings.UNPAID_CHECK_INTERVAL_HOURS}h, "
        f"purge every {settings.PURGE_INTERVAL_HOURS}h, "
        f"notification cleanup every {settings.NOTIFICATION_CLEANUP_INTERVAL_HOURS}h"
    )
    return scheduler
