from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update

from .models import Reminder
from .schemas import ReminderCreate, ReminderUpdate
from memocare.utils.timezone import utcnow


def create_reminder(db: Session, data: ReminderCreate) -> Reminder:
    reminder = Reminder(
        user_id=data.user_id,
        title=data.title,
        type=data.type,
        schedule_cron=data.schedule_cron,
        next_run_at=data.next_run_at,
        active=data.active,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_reminder(db: Session, reminder_id: int) -> Optional[Reminder]:
    return db.get(Reminder, reminder_id)


def list_reminders(
    db: Session,
    user_id: int,
    active: Optional[bool] = None,
    limit: int = 100,
) -> List[Reminder]:
    stmt = (
        select(Reminder)
        .where(Reminder.user_id == user_id)
        .order_by(Reminder.next_run_at.asc())
        .limit(limit)
    )
    if active is not None:
        stmt = stmt.where(Reminder.active == active)
    return list(db.execute(stmt).scalars())


def update_reminder(db: Session, reminder: Reminder, data: ReminderUpdate) -> Reminder:
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            # Nullable in the schema only so that fields can be omitted
            continue
        setattr(reminder, field, value)
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def delete_reminder(db: Session, reminder: Reminder) -> None:
    db.delete(reminder)
    db.commit()


def get_due_reminders(db: Session, now: datetime) -> List[Reminder]:
    """Active reminders whose next due time is at or before ``now``."""
    stmt = (
        select(Reminder)
        .where(Reminder.active == True)  # noqa: E712
        .where(Reminder.next_run_at <= now)
        .order_by(Reminder.next_run_at.asc(), Reminder.id.asc())
    )
    return list(db.execute(stmt).scalars())


def update_next_run(db: Session, reminder_id: int, next_run_at: datetime) -> None:
    db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .values(next_run_at=next_run_at, updated_at=utcnow())
    )
    db.commit()
