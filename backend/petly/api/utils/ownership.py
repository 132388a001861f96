from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ...db import models


def get_owned_dog(db: Session, dog_id: UUID, user: models.User) -> models.Dog:
    """Active dog belonging to ``user``; anything else looks like a missing dog."""
    dog = db.get(models.Dog, dog_id)
    if not dog or not dog.is_active or dog.owner_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dog not found")
    return dog


def owned_dog_ids(db: Session, user: models.User) -> set[UUID]:
    rows = (
        db.query(models.Dog.id)
        .filter(models.Dog.owner_id == user.id, models.Dog.is_active.is_(True))
        .all()
    )
    return {row[0] for row in rows}


def get_owned_log(db: Session, log_id: UUID, user: models.User) -> models.HealthLog:
    log = db.get(models.HealthLog, log_id)
    if not log or log.is_deleted or log.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Health log not found")
    return log


def get_owned_reminder(db: Session, reminder_id: UUID, user: models.User) -> models.PetReminder:
    reminder = db.get(models.PetReminder, reminder_id)
    if not reminder or reminder.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    return reminder


def get_owned_conversation(db: Session, conversation_id: UUID, user: models.User) -> models.Conversation:
    conversation = db.get(models.Conversation, conversation_id)
    if not conversation or conversation.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation


def require_updates(updates: dict) -> dict:
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    return updates


def find_log_by_client_id(db: Session, client_id: str | None) -> models.HealthLog | None:
    if not client_id:
        return None
    return db.query(models.HealthLog).filter(models.HealthLog.client_id == client_id).first()
