import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...api.utils.ownership import (
    find_log_by_client_id,
    get_owned_dog,
    get_owned_log,
    owned_dog_ids,
    require_updates,
)
from ...core.timeutils import as_utc, utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.health_log import (
    HealthLogBatch,
    HealthLogBatchResult,
    HealthLogCreate,
    HealthLogCreateResult,
    HealthLogList,
    HealthLogRead,
    HealthLogSync,
    HealthLogSyncResult,
    HealthLogUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health-logs", tags=["health_logs"])


def _new_log(user: models.User, payload: HealthLogCreate, dog_id: UUID | None = None) -> models.HealthLog:
    data = payload.model_dump()
    if dog_id is not None:
        data["dog_id"] = dog_id
    return models.HealthLog(user_id=user.id, **data)


@router.get("/", response_model=HealthLogList)
async def list_health_logs(
    dog_id: Optional[UUID] = None,
    since: Optional[datetime] = None,
    log_type: Optional[str] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthLogList:
    synced_at = utcnow()
    query = db.query(models.HealthLog).filter(models.HealthLog.user_id == current_user.id)
    if dog_id:
        get_owned_dog(db, dog_id, current_user)
        query = query.filter(models.HealthLog.dog_id == dog_id)
    if since:
        # Incremental sync also returns tombstones so clients can drop deleted entries.
        query = query.filter(models.HealthLog.updated_at >= as_utc(since))
    else:
        query = query.filter(models.HealthLog.is_deleted.is_(False))
    if log_type:
        query = query.filter(models.HealthLog.log_type == log_type)
    query = query.order_by(models.HealthLog.timestamp.desc())
    if limit and limit > 0:
        query = query.limit(limit)
    return HealthLogList(logs=[HealthLogRead.model_validate(log) for log in query.all()], synced_at=synced_at)


@router.post("/", response_model=HealthLogCreateResult, status_code=status.HTTP_201_CREATED)
async def create_health_log(
    payload: HealthLogCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthLogCreateResult:
    get_owned_dog(db, payload.dog_id, current_user)
    existing = find_log_by_client_id(db, payload.client_id)
    if existing is not None:
        if existing.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Client ID already in use")
        response.status_code = status.HTTP_200_OK
        result = HealthLogCreateResult.model_validate(existing)
        result.duplicate = True
        return result
    log = _new_log(current_user, payload)
    db.add(log)
    db.commit()
    db.refresh(log)
    return HealthLogCreateResult.model_validate(log)


@router.post("/batch", response_model=HealthLogBatchResult, status_code=status.HTTP_201_CREATED)
async def create_health_logs_batch(
    payload: HealthLogBatch,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthLogBatchResult:
    allowed = owned_dog_ids(db, current_user)
    valid = [item for item in payload.logs if item.dog_id in allowed]
    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid logs to create")
    created = 0
    duplicates = 0
    seen: set[str] = set()
    for item in valid:
        if item.client_id and (item.client_id in seen or find_log_by_client_id(db, item.client_id)):
            duplicates += 1
            continue
        if item.client_id:
            seen.add(item.client_id)
        db.add(_new_log(current_user, item))
        created += 1
    db.commit()
    logger.info("[HEALTH-LOGS] Batch for user %s: %d created, %d duplicates", current_user.id, created, duplicates)
    return HealthLogBatchResult(created=created, duplicates=duplicates)


@router.post("/sync", response_model=HealthLogSyncResult)
async def sync_health_logs(
    payload: HealthLogSync,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthLogSyncResult:
    """Two-way sync: return server changes since ``last_sync_at`` then upload local entries."""
    dog = get_owned_dog(db, payload.dog_id, current_user)
    synced_at = utcnow()

    query = db.query(models.HealthLog).filter(models.HealthLog.dog_id == dog.id)
    if payload.last_sync_at:
        query = query.filter(models.HealthLog.updated_at >= payload.last_sync_at)
    else:
        query = query.filter(models.HealthLog.is_deleted.is_(False))
    server_logs = [HealthLogRead.model_validate(log) for log in query.order_by(models.HealthLog.timestamp.desc())]

    uploaded = 0
    duplicate_client_ids: List[str] = []
    for item in payload.local_logs:
        if item.client_id and (item.client_id in duplicate_client_ids or find_log_by_client_id(db, item.client_id)):
            duplicate_client_ids.append(item.client_id)
            continue
        db.add(_new_log(current_user, item, dog_id=dog.id))
        db.flush()
        uploaded += 1
    db.commit()
    return HealthLogSyncResult(
        server_logs=server_logs,
        uploaded_count=uploaded,
        duplicate_client_ids=duplicate_client_ids,
        synced_at=synced_at,
    )


@router.get("/{log_id}", response_model=HealthLogRead)
async def read_health_log(
    log_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.HealthLog:
    return get_owned_log(db, log_id, current_user)


@router.patch("/{log_id}", response_model=HealthLogRead)
async def update_health_log(
    log_id: UUID,
    payload: HealthLogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.HealthLog:
    log = get_owned_log(db, log_id, current_user)
    for field, value in require_updates(payload.model_dump(exclude_unset=True)).items():
        setattr(log, field, value)
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_health_log(
    log_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    log = get_owned_log(db, log_id, current_user)
    log.is_deleted = True
    db.add(log)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
