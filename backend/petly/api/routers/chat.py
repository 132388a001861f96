import logging
from datetime import timedelta
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...api.utils.ownership import get_owned_conversation, get_owned_dog
from ...api.utils.rate_limit import chat_rate_limit
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.chat import (
    ChatMessageRead,
    ChatRequest,
    ChatResponse,
    ConversationMessages,
    ConversationRead,
    ConversationUpdate,
    MessageFeedback,
)
from ...services import assistant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def context_logs(db: Session, dog_id: UUID) -> List[models.HealthLog]:
    return (
        db.query(models.HealthLog)
        .filter(
            models.HealthLog.dog_id == dog_id,
            models.HealthLog.is_deleted.is_(False),
            models.HealthLog.timestamp >= utcnow() - timedelta(days=assistant.CONTEXT_DAYS),
        )
        .order_by(models.HealthLog.timestamp.desc())
        .limit(assistant.CONTEXT_LOG_LIMIT)
        .all()
    )


@router.post("/", response_model=ChatResponse)
def send_message(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(chat_rate_limit),
) -> ChatResponse:
    dog = get_owned_dog(db, payload.dog_id, current_user) if payload.dog_id else None

    if payload.conversation_id:
        conversation = get_owned_conversation(db, payload.conversation_id, current_user)
        needs_title = not conversation.title
    else:
        conversation = models.Conversation(user_id=current_user.id, dog_id=dog.id if dog else None)
        db.add(conversation)
        db.flush()
        needs_title = True
    if dog is None and conversation.dog_id:
        dog = db.get(models.Dog, conversation.dog_id)
        if dog is not None and not dog.is_active:
            dog = None

    user_message = models.ChatMessage(conversation_id=conversation.id, role="user", content=payload.message)
    db.add(user_message)
    db.flush()

    history = (
        db.query(models.ChatMessage)
        .filter(models.ChatMessage.conversation_id == conversation.id)
        .order_by(models.ChatMessage.created_at.desc())
        .limit(assistant.HISTORY_LIMIT)
        .all()
    )
    history.reverse()
    logs = context_logs(db, dog.id) if dog else []
    messages = assistant.build_messages(assistant.build_system_prompt(dog, logs), history)

    try:
        reply = assistant.complete_chat(messages)
    except assistant.AssistantError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    reply_message = models.ChatMessage(
        conversation_id=conversation.id,
        role="assistant",
        content=reply.content,
        tokens_used=reply.tokens_used,
        model_used=reply.model,
    )
    db.add(reply_message)
    if needs_title:
        conversation.title = assistant.conversation_title(payload.message)
    conversation.updated_at = utcnow()
    db.add(conversation)
    db.add(
        models.UsageEvent(
            user_id=current_user.id,
            event_type="chat_message",
            event_data={
                "conversation_id": str(conversation.id),
                "tokens_used": reply.tokens_used,
                "model": reply.model,
            },
        )
    )
    db.commit()
    db.refresh(reply_message)
    logger.info("[CHAT] User %s conversation %s: %s tokens", current_user.id, conversation.id, reply.tokens_used)
    return ChatResponse(conversation_id=conversation.id, message=ChatMessageRead.model_validate(reply_message))


@router.get("/conversations", response_model=List[ConversationRead])
async def list_conversations(
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[models.Conversation]:
    return (
        db.query(models.Conversation)
        .filter(models.Conversation.user_id == current_user.id)
        .order_by(models.Conversation.updated_at.desc())
        .limit(limit)
        .all()
    )


@router.get("/conversations/{conversation_id}", response_model=ConversationRead)
async def read_conversation(
    conversation_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.Conversation:
    return get_owned_conversation(db, conversation_id, current_user)


@router.get("/conversations/{conversation_id}/messages", response_model=ConversationMessages)
async def list_messages(
    conversation_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> ConversationMessages:
    conversation = get_owned_conversation(db, conversation_id, current_user)
    return ConversationMessages(
        conversation=ConversationRead.model_validate(conversation),
        messages=[ChatMessageRead.model_validate(message) for message in conversation.messages],
    )


@router.patch("/conversations/{conversation_id}", response_model=ConversationRead)
async def rename_conversation(
    conversation_id: UUID,
    payload: ConversationUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.Conversation:
    conversation = get_owned_conversation(db, conversation_id, current_user)
    conversation.title = payload.title.strip()
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    conversation = get_owned_conversation(db, conversation_id, current_user)
    db.delete(conversation)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/messages/{message_id}/feedback", response_model=ChatMessageRead)
async def rate_message(
    message_id: UUID,
    payload: MessageFeedback,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.ChatMessage:
    message = db.get(models.ChatMessage, message_id)
    if not message or message.conversation.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if message.role != "assistant":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only assistant replies can be rated")
    message.feedback = payload.feedback
    db.add(message)
    db.commit()
    db.refresh(message)
    return message
