import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from sqlalchemy.orm import Session

from .config import settings as reminder_settings
from .metrics import (
    scheduler_dispatched_total,
    scheduler_dropped_total,
    scheduler_failed_total,
    scheduler_scans_total,
)
from .repository import get_due_reminders, update_next_run
from .schemas import ReminderDueEvent
from memocare.utils.timezone import utcnow, to_utc_naive

logger = logging.getLogger(__name__)

REMINDER_DUE_EVENT = "reminder:due"
DEFAULT_RESCHEDULE_PERIOD = timedelta(days=1)


class NotificationChannel(Protocol):
    async def publish(self, user_id: int, event: str, data: Dict[str, Any]) -> bool:
        ...


@dataclass
class DispatchReport:
    """Outcome of one scan: how many reminders were due and what happened to each."""
    scanned: int = 0
    notified: List[int] = field(default_factory=list)
    dropped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    rescheduled: List[int] = field(default_factory=list)


class ReminderDispatcher:
    """
    Fires due reminders over a live channel and pushes their next due time forward.

    The stored ``schedule_cron`` descriptor is not evaluated: every fired reminder
    is rescheduled to ``now + reschedule_period`` (one day by default), which keeps
    the next due time strictly in the future of the dispatch.

    Each reminder is handled on its own. A publish error or a failed update is
    logged and the scan moves on to the next reminder. A user without a live
    connection simply misses the notification; nothing is queued or retried.
    A publish that does not finish within ``publish_timeout`` seconds counts as
    failed, so one stalled socket cannot hold up the rest of the scan.

    Database calls run in a worker thread to keep the event loop responsive.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        channel: NotificationChannel,
        reschedule_period: timedelta = DEFAULT_RESCHEDULE_PERIOD,
        publish_timeout: Optional[float] = None,
    ):
        if reschedule_period <= timedelta(0):
            raise ValueError("reschedule_period must be positive")
        if publish_timeout is None:
            publish_timeout = reminder_settings.PUBLISH_TIMEOUT_SECONDS
        if publish_timeout <= 0:
            raise ValueError("publish_timeout must be positive")
        self.session_factory = session_factory
        self.channel = channel
        self.reschedule_period = reschedule_period
        self.publish_timeout = publish_timeout

    async def run_once(self, now: Optional[datetime] = None) -> DispatchReport:
        now = to_utc_naive(now) if now is not None else utcnow()
        report = DispatchReport()
        scheduler_scans_total.inc()

        db = self.session_factory()
        try:
            try:
                due = await asyncio.to_thread(_load_due, db, now)
            except Exception as e:
                logger.error(f"❌ [Reminders] Failed to load due reminders: {e!r}")
                db.rollback()
                return report

            report.scanned = len(due)
            if due:
                logger.info(f"🕒 [Reminders] {len(due)} due reminder(s) at {now.isoformat()}")

            next_run_at = now + self.reschedule_period
            for reminder_id, user_id, event in due:
                await self._notify(reminder_id, user_id, event, report)
                await self._reschedule(db, reminder_id, next_run_at, report)
        finally:
            db.close()
        return report

    async def _notify(self, reminder_id: int, user_id: int, event: ReminderDueEvent, report: DispatchReport) -> None:
        try:
            delivered = await asyncio.wait_for(
                self.channel.publish(user_id, REMINDER_DUE_EVENT, event.model_dump()),
                timeout=self.publish_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"❌ [Reminders] Publish timed out after {self.publish_timeout}s "
                f"for reminder {reminder_id} (user {user_id})"
            )
            report.failed.append(reminder_id)
            scheduler_failed_total.inc()
            return
        except Exception as e:
            logger.error(f"❌ [Reminders] Publish failed for reminder {reminder_id} (user {user_id}): {e!r}")
            report.failed.append(reminder_id)
            scheduler_failed_total.inc()
            return

        if delivered:
            logger.info(f"✅ [Reminders] Reminder fired: {event.title!r} for user {user_id}")
            report.notified.append(reminder_id)
            scheduler_dispatched_total.inc()
        else:
            logger.info(f"⚠️ [Reminders] User {user_id} offline - dropped reminder {reminder_id}")
            report.dropped.append(reminder_id)
            scheduler_dropped_total.inc()

    async def _reschedule(self, db: Session, reminder_id: int, next_run_at: datetime, report: DispatchReport) -> None:
        try:
            await asyncio.to_thread(update_next_run, db, reminder_id, next_run_at)
        except Exception as e:
            logger.error(f"❌ [Reminders] Failed to reschedule reminder {reminder_id}: {e!r}")
            db.rollback()
            if reminder_id not in report.failed:
                report.failed.append(reminder_id)
            scheduler_failed_total.inc()
            return
        report.rescheduled.append(reminder_id)


def _load_due(db: Session, now: datetime) -> List[Tuple[int, int, ReminderDueEvent]]:
    # Plain values, so a later rollback cannot expire them mid-scan
    return [
        (r.id, r.user_id, ReminderDueEvent(id=r.id, title=r.title, type=r.type))
        for r in get_due_reminders(db, now)
    ]
