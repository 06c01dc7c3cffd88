from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from memocare.db.session import get_db
from memocare.api.deps import verify_api_key_dependency
from .schemas import ReminderCreate, ReminderRead, ReminderUpdate
from .repository import create_reminder, delete_reminder, get_reminder, list_reminders, update_reminder
from .metrics import reminders_created_total


router = APIRouter(dependencies=[Depends(verify_api_key_dependency)])


@router.get("/", response_model=List[ReminderRead])
def list_reminders_endpoint(
    user_id: int = Query(..., ge=1),
    active: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return list_reminders(db, user_id=user_id, active=active, limit=limit)


@router.post("/", response_model=ReminderRead, status_code=201)
def create_reminder_endpoint(payload: ReminderCreate, db: Session = Depends(get_db)):
    reminder = create_reminder(db, payload)
    reminders_created_total.inc()
    return reminder


@router.get("/{reminder_id}", response_model=ReminderRead)
def get_reminder_endpoint(reminder_id: int, db: Session = Depends(get_db)):
    r = get_reminder(db, reminder_id)
    if not r:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return r


@router.patch("/{reminder_id}", response_model=ReminderRead)
def update_reminder_endpoint(reminder_id: int, payload: ReminderUpdate, db: Session = Depends(get_db)):
    """Partial update, including toggling ``active``."""
    r = get_reminder(db, reminder_id)
    if not r:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return update_reminder(db, r, payload)


@router.delete("/{reminder_id}", status_code=204)
def delete_reminder_endpoint(reminder_id: int, db: Session = Depends(get_db)):
    r = get_reminder(db, reminder_id)
    if not r:
        raise HTTPException(status_code=404, detail="Reminder not found")
    delete_reminder(db, r)
    return Response(status_code=204)
