"""
In-process scheduling of the reconciliation loops.

The cron endpoints (/api/stock-sync, /api/order-status-sync) and the CLI are
the primary triggers. This scheduler is for deployments without an external
cron and only schedules jobs when SYNC_SCHEDULE_ENABLED=true.
"""

import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from itscope_connector.container import ServiceContainer

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def stock_sync_task(container: ServiceContainer):
    try:
        logger.info("=== SCHEDULED STOCK SYNC STARTING ===")
        result = await container.stock_sync.run()
        logger.info(f"Scheduled stock sync finished: {result.updated} updated, {result.errors} errors")
    except Exception as e:
        logger.exception(f"Error in scheduled stock sync: {str(e)}")


async def order_status_sync_task(container: ServiceContainer):
    try:
        logger.info("=== SCHEDULED ORDER STATUS SYNC STARTING ===")
        result = await container.order_status_sync.run()
        logger.info(f"Scheduled order status sync finished: {result.updated} updated, {result.errors} errors")
    except Exception as e:
        logger.exception(f"Error in scheduled order status sync: {str(e)}")


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler(container: ServiceContainer) -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    global scheduler

    if scheduler is not None:
        return scheduler

    settings = container.settings
    scheduler = AsyncIOScheduler()
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if settings.SYNC_SCHEDULE_ENABLED:
        scheduler.add_job(
            stock_sync_task,
            CronTrigger.from_crontab(settings.STOCK_SYNC_SCHEDULE),
            args=[container],
            id="stock_sync",
            name="ItScope Stock Sync",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=600
        )
        logger.info(f"Stock sync job added with schedule: {settings.STOCK_SYNC_SCHEDULE}")

        scheduler.add_job(
            order_status_sync_task,
            CronTrigger.from_crontab(settings.ORDER_STATUS_SYNC_SCHEDULE),
            args=[container],
            id="order_status_sync",
            name="ItScope Order Status Sync",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=600
        )
        logger.info(f"Order status sync job added with schedule: {settings.ORDER_STATUS_SYNC_SCHEDULE}")
    else:
        logger.info("Scheduled sync is disabled. Set SYNC_SCHEDULE_ENABLED=true to enable")

    return scheduler


async def start_scheduler(container: ServiceContainer):
    """Start the scheduler"""
    global scheduler

    if scheduler is None:
        scheduler = create_scheduler(container)

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")

        jobs = scheduler.get_jobs()
        if jobs:
            logger.info(f"Active scheduled jobs: {len(jobs)}")
            for job in jobs:
                logger.info(f"  - {job.name}: {job.trigger}")
        else:
            logger.info("No scheduled jobs configured")


async def stop_scheduler():
    """Stop the scheduler gracefully"""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped successfully")
    scheduler = None


def get_scheduler_status():
    """Get current scheduler status and job information"""
    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}

    jobs_info = []
    for job in scheduler.get_jobs():
        jobs_info.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger)
        })

    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": jobs_info
    }
