from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ...analytics.summary import format_log_summary, group_logs_by_type
from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_dog, require_updates
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.dog import DogCreate, DogRead, DogUpdate
from ...schemas.insight import VetSummary

router = APIRouter(prefix="/dogs", tags=["dogs"])

VET_SUMMARY_PERIODS = (7, 30, 90)


@router.get("/", response_model=List[DogRead])
async def list_dogs(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[models.Dog]:
    return (
        db.query(models.Dog)
        .filter(models.Dog.owner_id == current_user.id, models.Dog.is_active.is_(True))
        .order_by(models.Dog.created_at.desc())
        .all()
    )


@router.post("/", response_model=DogRead, status_code=status.HTTP_201_CREATED)
async def create_dog(
    payload: DogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.Dog:
    data = payload.model_dump(exclude={"id"})
    if payload.id is not None:
        if db.get(models.Dog, payload.id) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Dog already exists")
        data["id"] = payload.id
    dog = models.Dog(owner_id=current_user.id, **data)
    db.add(dog)
    db.commit()
    db.refresh(dog)
    return dog


@router.get("/{dog_id}", response_model=DogRead)
async def read_dog(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.Dog:
    return get_owned_dog(db, dog_id, current_user)


@router.patch("/{dog_id}", response_model=DogRead)
async def update_dog(
    dog_id: UUID,
    payload: DogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.Dog:
    dog = get_owned_dog(db, dog_id, current_user)
    for field, value in require_updates(payload.model_dump(exclude_unset=True)).items():
        setattr(dog, field, value)
    db.add(dog)
    db.commit()
    db.refresh(dog)
    return dog


@router.delete("/{dog_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dog(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    dog = get_owned_dog(db, dog_id, current_user)
    dog.is_active = False
    db.add(dog)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{dog_id}/vet-summary", response_model=VetSummary)
async def vet_summary(
    dog_id: UUID,
    days: int = 30,
    log_types: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> VetSummary:
    if days not in VET_SUMMARY_PERIODS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"days must be one of {', '.join(str(d) for d in VET_SUMMARY_PERIODS)}",
        )
    dog = get_owned_dog(db, dog_id, current_user)
    query = db.query(models.HealthLog).filter(
        models.HealthLog.dog_id == dog.id,
        models.HealthLog.is_deleted.is_(False),
        models.HealthLog.timestamp >= utcnow() - timedelta(days=days),
    )
    if log_types:
        query = query.filter(models.HealthLog.log_type.in_(log_types))
    logs = query.order_by(models.HealthLog.timestamp.desc()).all()
    groups = group_logs_by_type(logs)
    return VetSummary(
        dog_name=dog.name,
        days=days,
        total_logs=len(logs),
        counts_by_type={log_type: len(entries) for log_type, entries in groups.items()},
        summary_text=format_log_summary(logs, per_type=10),
    )
