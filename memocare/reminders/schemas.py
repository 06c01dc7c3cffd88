from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from memocare.utils.timezone import to_utc_aware, to_utc_naive


ReminderType = Literal["medication", "meal", "appointment", "task"]


class ReminderCreate(BaseModel):
    """Schema for creating a reminder"""
    user_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    type: ReminderType
    schedule_cron: str = Field(..., min_length=1)
    next_run_at: datetime
    active: bool = True

    @field_validator("next_run_at")
    @classmethod
    def normalize_next_run_at(cls, v: datetime) -> datetime:
        return to_utc_naive(v)


class ReminderUpdate(BaseModel):
    """Schema for updating reminders; unset fields are left alone"""
    title: Optional[str] = Field(default=None, min_length=1)
    type: Optional[ReminderType] = None
    schedule_cron: Optional[str] = Field(default=None, min_length=1)
    next_run_at: Optional[datetime] = None
    active: Optional[bool] = None

    @field_validator("next_run_at")
    @classmethod
    def normalize_next_run_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(v)


class ReminderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    type: str
    schedule_cron: str
    next_run_at: datetime
    active: bool
    created_at: datetime
    updated_at: datetime

    @field_serializer("next_run_at", "created_at", "updated_at")
    def serialize_utc(self, v: datetime) -> str:
        return to_utc_aware(v).isoformat()


class ReminderDueEvent(BaseModel):
    """Payload pushed to the owner's live channel when a reminder fires"""
    id: int
    title: str
    type: str
