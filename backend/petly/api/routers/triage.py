import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...api.routers.chat import context_logs
from ...api.utils.ownership import get_owned_dog
from ...api.utils.rate_limit import chat_rate_limit
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.triage import TriageRequest, TriageResult
from ...services import assistant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dogs", tags=["triage"])


def _save_symptom(db: Session, user: models.User, dog: models.Dog, payload: TriageRequest, triage=None) -> models.HealthLog:
    log = models.HealthLog(
        dog_id=dog.id,
        user_id=user.id,
        log_type="Symptom",
        timestamp=utcnow(),
        symptom_type=payload.symptom_type,
        severity_level=payload.severity,
        notes=assistant.triage_notes(payload, triage),
    )
    db.add(log)
    return log


@router.post("/{dog_id}/triage", response_model=TriageResult)
def triage_symptom(
    dog_id: UUID,
    payload: TriageRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(chat_rate_limit),
) -> TriageResult:
    """Ask the assistant how urgently a symptom needs a vet, and log the symptom."""
    dog = get_owned_dog(db, dog_id, current_user)
    messages = [
        {"role": "system", "content": assistant.build_system_prompt(dog, context_logs(db, dog.id))},
        {"role": "user", "content": assistant.build_triage_prompt(payload)},
    ]
    try:
        reply = assistant.complete_chat(messages)
    except assistant.AssistantError as exc:
        logger.warning("[TRIAGE] Assistant unavailable for dog %s: %s", dog.id, exc)
        if not payload.save_log:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Unable to analyze symptoms")
        _save_symptom(db, current_user, dog, payload)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Unable to analyze symptoms. The symptom was still saved.",
        )

    triage = assistant.parse_triage_response(reply.content, dog.name)
    log = _save_symptom(db, current_user, dog, payload, triage) if payload.save_log else None
    db.add(
        models.UsageEvent(
            user_id=current_user.id,
            event_type="symptom_triage",
            event_data={"dog_id": str(dog.id), "urgency": triage.urgency, "tokens_used": reply.tokens_used},
        )
    )
    db.commit()
    logger.info("[TRIAGE] Dog %s symptom %s rated %s", dog.id, payload.symptom_type, triage.urgency)
    return TriageResult(
        urgency=triage.urgency,
        assessment=triage.assessment,
        recommendations=triage.recommendations,
        log_id=log.id if log is not None else None,
    )
