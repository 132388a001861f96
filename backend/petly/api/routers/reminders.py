from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...analytics.reminders import complete_reminder, days_until_due, is_due
from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_dog, get_owned_reminder, require_updates
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.reminder import ReminderCreate, ReminderRead, ReminderUpdate

router = APIRouter(prefix="/reminders", tags=["reminders"])


def _to_read(reminder: models.PetReminder) -> ReminderRead:
    now = utcnow()
    result = ReminderRead.model_validate(reminder)
    result.is_due = is_due(reminder, now)
    result.days_until_due = days_until_due(reminder, now)
    return result


@router.get("/", response_model=List[ReminderRead])
async def list_reminders(
    dog_id: Optional[UUID] = None,
    due_only: bool = False,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[ReminderRead]:
    query = db.query(models.PetReminder).filter(models.PetReminder.user_id == current_user.id)
    if dog_id:
        get_owned_dog(db, dog_id, current_user)
        query = query.filter(models.PetReminder.dog_id == dog_id)
    reminders = [_to_read(reminder) for reminder in query.order_by(models.PetReminder.next_due_date.asc())]
    if due_only:
        reminders = [reminder for reminder in reminders if reminder.is_due]
    return reminders


@router.post("/", response_model=ReminderRead, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    payload: ReminderCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> ReminderRead:
    get_owned_dog(db, payload.dog_id, current_user)
    reminder = models.PetReminder(user_id=current_user.id, **payload.model_dump())
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return _to_read(reminder)


@router.patch("/{reminder_id}", response_model=ReminderRead)
async def update_reminder(
    reminder_id: UUID,
    payload: ReminderUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> ReminderRead:
    reminder = get_owned_reminder(db, reminder_id, current_user)
    for field, value in require_updates(payload.model_dump(exclude_unset=True)).items():
        setattr(reminder, field, value)
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return _to_read(reminder)


@router.post("/{reminder_id}/complete", response_model=ReminderRead)
async def mark_reminder_completed(
    reminder_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> ReminderRead:
    reminder = get_owned_reminder(db, reminder_id, current_user)
    complete_reminder(reminder, utcnow())
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return _to_read(reminder)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(
    reminder_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    reminder = get_owned_reminder(db, reminder_id, current_user)
    db.delete(reminder)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
