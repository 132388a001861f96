"""Per-dog key-value storage for small encoded lists (log templates, weight history)."""
from typing import List, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import models

TEMPLATES_KEY = "log_templates"
WEIGHTS_KEY = "weight_entries"

ItemT = TypeVar("ItemT", bound=BaseModel)


def _entry(db: Session, dog_id: UUID, key: str) -> models.DogStoreEntry | None:
    return (
        db.query(models.DogStoreEntry)
        .filter(models.DogStoreEntry.dog_id == dog_id, models.DogStoreEntry.key == key)
        .first()
    )


def load_list(db: Session, dog_id: UUID, key: str, item_type: Type[ItemT]) -> List[ItemT]:
    entry = _entry(db, dog_id, key)
    if entry is None:
        return []
    return [item_type.model_validate(item) for item in entry.value or []]


def save_list(db: Session, dog_id: UUID, key: str, items: Sequence[BaseModel]) -> None:
    """Replace the stored list. The caller commits."""
    entry = _entry(db, dog_id, key)
    if entry is None:
        entry = models.DogStoreEntry(dog_id=dog_id, key=key)
    entry.value = [item.model_dump(mode="json") for item in items]
    db.add(entry)
