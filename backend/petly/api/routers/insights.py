from datetime import timedelta
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...analytics.health_score import compute_health_score
from ...analytics.insights import data_stats, generate_insights
from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_dog
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.insight import DataStats, HealthScore, Insight

router = APIRouter(prefix="/dogs", tags=["insights"])

LOOKBACK_DAYS = 30


def _dog_logs(db: Session, dog_id: UUID, days: int | None = None) -> List[models.HealthLog]:
    query = db.query(models.HealthLog).filter(
        models.HealthLog.dog_id == dog_id,
        models.HealthLog.is_deleted.is_(False),
    )
    if days is not None:
        query = query.filter(models.HealthLog.timestamp >= utcnow() - timedelta(days=days))
    return query.order_by(models.HealthLog.timestamp.asc()).all()


@router.get("/{dog_id}/insights", response_model=List[Insight])
async def read_insights(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[Insight]:
    dog = get_owned_dog(db, dog_id, current_user)
    check_ins = (
        db.query(models.DailyCheckIn)
        .filter(
            models.DailyCheckIn.dog_id == dog_id,
            models.DailyCheckIn.check_in_date >= (utcnow() - timedelta(days=7)).date(),
        )
        .all()
    )
    # keep_logging needs the lifetime count, the rest only look back 30 days
    return generate_insights(_dog_logs(db, dog_id), check_ins, now=utcnow(), dog_name=dog.name)


@router.get("/{dog_id}/data-stats", response_model=DataStats)
async def read_data_stats(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> DataStats:
    get_owned_dog(db, dog_id, current_user)
    return data_stats(_dog_logs(db, dog_id, LOOKBACK_DAYS), now=utcnow())


@router.get("/{dog_id}/health-score", response_model=HealthScore)
async def read_health_score(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthScore:
    get_owned_dog(db, dog_id, current_user)
    return compute_health_score(_dog_logs(db, dog_id, 7), now=utcnow())
