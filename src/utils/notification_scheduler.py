"""
Notification scheduling sink using APScheduler for local alert delivery
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import pytz
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from models.notifications import NotificationAuthorization

logger = logging.getLogger(__name__)


async def deliver_notification(
    identifier: str, title: str, body: str, webhook_url: Optional[str] = None
):
    """Deliver a fired alert: log it and forward it to the webhook if configured"""
    logger.info(f"Notification fired [{identifier}]: {title} - {body}")
    if not webhook_url:
        return

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                webhook_url,
                json={"identifier": identifier, "title": title, "body": body},
            )
        if response.status_code >= 400:
            logger.error(
                f"Webhook rejected notification {identifier}: HTTP {response.status_code} - {response.text}"
            )
    except httpx.HTTPError as e:
        logger.error(f"Error delivering notification {identifier}: {e}")


class NotificationScheduler:
    """Schedules one-shot alerts with APScheduler date triggers"""

    def __init__(self, webhook_url: Optional[str] = None, scheduler=None):
        self.webhook_url = webhook_url

        # Configure APScheduler
        self.scheduler = scheduler or AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 60,
            },
        )
        self.authorization = NotificationAuthorization.NOT_DETERMINED

    async def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("NotificationScheduler started")

    async def shutdown(self):
        """Shutdown the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("NotificationScheduler shutdown")

    def set_authorization_status(self, status: NotificationAuthorization) -> None:
        logger.info(f"Notification authorization set to {status.value}")
        self.authorization = status

    async def get_authorization_status(self) -> NotificationAuthorization:
        return self.authorization

    def schedule(self, identifier: str, title: str, body: str, fire_at: datetime) -> bool:
        """Schedule an alert; instants that are not in the future are skipped"""
        if fire_at <= datetime.now(pytz.utc):
            logger.info(f"Notification {identifier} skipped: {fire_at} is in the past")
            return False

        self.scheduler.add_job(
            func=deliver_notification,
            trigger=DateTrigger(run_date=fire_at),
            args=[identifier, title, body, self.webhook_url],
            id=identifier,
            name=title,
            replace_existing=True,
        )
        logger.info(f"Scheduled notification {identifier} for {fire_at.isoformat()}")
        return True

    def cancel(self, identifier: str) -> bool:
        """Cancel a scheduled alert by its identifier"""
        try:
            self.scheduler.remove_job(identifier)
        except JobLookupError:
            logger.debug(f"Notification {identifier} not found")
            return False

        logger.info(f"Cancelled notification: {identifier}")
        return True

    def cancel_all(self) -> None:
        self.scheduler.remove_all_jobs()
        logger.info("Cancelled all pending notifications")

    def get_scheduled(self) -> List[Dict[str, Any]]:
        """List scheduled alerts ordered by fire time"""
        scheduled = []
        for job in self.scheduler.get_jobs():
            scheduled.append(
                {
                    "identifier": job.id,
                    "title": job.args[1] if len(job.args) >= 2 else job.name,
                    "body": job.args[2] if len(job.args) >= 3 else "",
                    "fire_at": job.trigger.run_date,
                }
            )
        return sorted(scheduled, key=lambda item: item["fire_at"])
