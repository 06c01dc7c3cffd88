from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index

from memocare.db.base import Base
from memocare.utils.timezone import utcnow


class Reminder(Base):
    """User-owned scheduled notification"""
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String, nullable=False)
    type = Column(String(32), nullable=False)  # medication | meal | appointment | task
    schedule_cron = Column(String, nullable=False)  # recurrence descriptor, stored as given
    next_run_at = Column(DateTime, nullable=False)  # UTC-naive
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_reminders_active_next_run", "active", "next_run_at"),
        Index("ix_reminders_user_next_run", "user_id", "next_run_at"),
    )
