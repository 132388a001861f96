from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...analytics.consistency import care_consistency
from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_dog
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.check_in import CheckInCreate, CheckInRead
from ...schemas.insight import CareConsistency

router = APIRouter(prefix="/dogs", tags=["check_ins"])


@router.get("/{dog_id}/check-ins", response_model=List[CheckInRead])
async def list_check_ins(
    dog_id: UUID,
    limit: int = 60,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[models.DailyCheckIn]:
    get_owned_dog(db, dog_id, current_user)
    query = (
        db.query(models.DailyCheckIn)
        .filter(models.DailyCheckIn.dog_id == dog_id)
        .order_by(models.DailyCheckIn.check_in_date.desc())
    )
    if limit and limit > 0:
        query = query.limit(limit)
    return query.all()


@router.post("/{dog_id}/check-ins", response_model=CheckInRead, status_code=status.HTTP_201_CREATED)
async def submit_check_in(
    dog_id: UUID,
    payload: CheckInCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.DailyCheckIn:
    """Record the daily review. A second review on the same day replaces the first."""
    get_owned_dog(db, dog_id, current_user)
    check_in_date = payload.check_in_date or utcnow().date()
    check_in = (
        db.query(models.DailyCheckIn)
        .filter(
            models.DailyCheckIn.dog_id == dog_id,
            models.DailyCheckIn.check_in_date == check_in_date,
        )
        .first()
    )
    if check_in is None:
        check_in = models.DailyCheckIn(dog_id=dog_id, user_id=current_user.id, check_in_date=check_in_date)
    else:
        response.status_code = status.HTTP_200_OK
    for field, value in payload.model_dump(exclude={"check_in_date"}).items():
        setattr(check_in, field, value)
    check_in.completed_at = utcnow()
    db.add(check_in)
    db.commit()
    db.refresh(check_in)
    return check_in


@router.get("/{dog_id}/consistency", response_model=CareConsistency)
async def read_consistency(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> CareConsistency:
    get_owned_dog(db, dog_id, current_user)
    dates = [
        row[0]
        for row in db.query(models.DailyCheckIn.check_in_date).filter(models.DailyCheckIn.dog_id == dog_id)
    ]
    reminders_count = db.query(models.PetReminder).filter(models.PetReminder.dog_id == dog_id).count()
    logs_count = (
        db.query(models.HealthLog)
        .filter(models.HealthLog.dog_id == dog_id, models.HealthLog.is_deleted.is_(False))
        .count()
    )
    return care_consistency(dates, utcnow().date(), reminders_count=reminders_count, logs_count=logs_count)
