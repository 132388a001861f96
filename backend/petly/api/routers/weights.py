from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...analytics.weights import sort_entries, weight_stats
from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_dog
from ...db import models
from ...db.session import get_db
from ...schemas.weight import WeightEntry, WeightEntryCreate, WeightStats
from ...services.dog_store import WEIGHTS_KEY, load_list, save_list

router = APIRouter(prefix="/dogs", tags=["weights"])


@router.get("/{dog_id}/weights", response_model=List[WeightEntry])
async def list_weights(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[WeightEntry]:
    get_owned_dog(db, dog_id, current_user)
    return sort_entries(load_list(db, dog_id, WEIGHTS_KEY, WeightEntry))


@router.get("/{dog_id}/weights/stats", response_model=WeightStats)
async def read_weight_stats(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> WeightStats:
    get_owned_dog(db, dog_id, current_user)
    return weight_stats(load_list(db, dog_id, WEIGHTS_KEY, WeightEntry))


@router.post("/{dog_id}/weights", response_model=WeightEntry, status_code=status.HTTP_201_CREATED)
async def add_weight(
    dog_id: UUID,
    payload: WeightEntryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> WeightEntry:
    dog = get_owned_dog(db, dog_id, current_user)
    entry = WeightEntry(**payload.model_dump())
    entries = sort_entries(load_list(db, dog_id, WEIGHTS_KEY, WeightEntry) + [entry])
    save_list(db, dog_id, WEIGHTS_KEY, entries)
    # The profile weight follows the newest measurement, not the newest insert.
    if entries[-1].id == entry.id:
        dog.weight_lbs = entry.weight
        db.add(dog)
    db.commit()
    return entry


@router.delete("/{dog_id}/weights/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_weight(
    dog_id: UUID,
    entry_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    get_owned_dog(db, dog_id, current_user)
    entries = load_list(db, dog_id, WEIGHTS_KEY, WeightEntry)
    remaining = [entry for entry in entries if entry.id != entry_id]
    if len(remaining) == len(entries):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Weight entry not found")
    save_list(db, dog_id, WEIGHTS_KEY, remaining)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
