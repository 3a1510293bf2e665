"""
APScheduler setup for periodic billing jobs.
Runs inside the API process, no broker needed.
"""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime

from .config import settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def overdue_bills_job():
    """Background job that flips Pending bills past their due date to Overdue"""
    try:
        import asyncio
        from nestify.services.billing_service import billing_service

        logger.info(f"[{datetime.now()}] Running overdue bill scan...")
        updated = asyncio.run(billing_service.mark_overdue_bills())

        if updated > 0:
            logger.info(f"Overdue scan complete: {updated} bill(s) marked Overdue")
        else:
            logger.info("No bills became overdue")

    except Exception as e:
        logger.error(f"Overdue bill scan failed: {str(e)}", exc_info=True)


def start_scheduler():
    """Start the background scheduler for the overdue scan"""
    if not settings.ENABLE_OVERDUE_SCAN:
        logger.info("Overdue bill scan disabled (ENABLE_OVERDUE_SCAN=false)")
        return

    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    try:
        interval_minutes = settings.OVERDUE_SCAN_INTERVAL_MINUTES

        scheduler.add_job(
            overdue_bills_job,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id='overdue_bill_scan',
            name='Overdue Bill Scan',
            replace_existing=True,
            misfire_grace_time=60
        )

        scheduler.start()
        logger.info(f"Scheduler started: overdue bill scan every {interval_minutes} minute(s)")

    except Exception as e:
        logger.error(f"Failed to start scheduler: {str(e)}", exc_info=True)


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
