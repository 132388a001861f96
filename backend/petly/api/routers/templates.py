from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...api.utils.ownership import find_log_by_client_id, get_owned_dog, require_updates
from ...core.timeutils import utcnow
from ...db import models
from ...db.session import get_db
from ...schemas.health_log import HealthLogCreateResult
from ...schemas.template import LogTemplate, LogTemplateCreate, LogTemplateUpdate, TemplateApply
from ...services.dog_store import TEMPLATES_KEY, load_list, save_list

router = APIRouter(prefix="/dogs", tags=["templates"])

TEMPLATE_LOG_FIELDS = (
    "log_type",
    "meal_type",
    "amount",
    "duration",
    "treat_name",
    "supplement_name",
    "dosage",
    "notes",
)


def _find(templates: List[LogTemplate], template_id: UUID) -> LogTemplate:
    for template in templates:
        if template.id == template_id:
            return template
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


@router.get("/{dog_id}/templates", response_model=List[LogTemplate])
async def list_templates(
    dog_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> List[LogTemplate]:
    get_owned_dog(db, dog_id, current_user)
    return load_list(db, dog_id, TEMPLATES_KEY, LogTemplate)


@router.post("/{dog_id}/templates", response_model=LogTemplate, status_code=status.HTTP_201_CREATED)
async def create_template(
    dog_id: UUID,
    payload: LogTemplateCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> LogTemplate:
    get_owned_dog(db, dog_id, current_user)
    templates = load_list(db, dog_id, TEMPLATES_KEY, LogTemplate)
    template = LogTemplate(created_at=utcnow(), **payload.model_dump())
    templates.append(template)
    save_list(db, dog_id, TEMPLATES_KEY, templates)
    db.commit()
    return template


@router.patch("/{dog_id}/templates/{template_id}", response_model=LogTemplate)
async def update_template(
    dog_id: UUID,
    template_id: UUID,
    payload: LogTemplateUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> LogTemplate:
    get_owned_dog(db, dog_id, current_user)
    templates = load_list(db, dog_id, TEMPLATES_KEY, LogTemplate)
    template = _find(templates, template_id)
    updated = template.model_copy(update=require_updates(payload.model_dump(exclude_unset=True)))
    templates = [updated if item.id == template_id else item for item in templates]
    save_list(db, dog_id, TEMPLATES_KEY, templates)
    db.commit()
    return updated


@router.delete("/{dog_id}/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    dog_id: UUID,
    template_id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    get_owned_dog(db, dog_id, current_user)
    templates = load_list(db, dog_id, TEMPLATES_KEY, LogTemplate)
    _find(templates, template_id)
    save_list(db, dog_id, TEMPLATES_KEY, [item for item in templates if item.id != template_id])
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{dog_id}/templates/{template_id}/apply",
    response_model=HealthLogCreateResult,
    status_code=status.HTTP_201_CREATED,
)
async def apply_template(
    dog_id: UUID,
    template_id: UUID,
    payload: TemplateApply,
    response: Response,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> HealthLogCreateResult:
    """Create a health log prefilled from the template. Retries with the same client_id return the first log."""
    get_owned_dog(db, dog_id, current_user)
    template = _find(load_list(db, dog_id, TEMPLATES_KEY, LogTemplate), template_id)
    existing = find_log_by_client_id(db, payload.client_id)
    if existing is not None:
        if existing.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Client ID already in use")
        response.status_code = status.HTTP_200_OK
        result = HealthLogCreateResult.model_validate(existing)
        result.duplicate = True
        return result
    log = models.HealthLog(
        dog_id=dog_id,
        user_id=current_user.id,
        timestamp=payload.timestamp or utcnow(),
        client_id=payload.client_id,
        **{field: getattr(template, field) for field in TEMPLATE_LOG_FIELDS},
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return HealthLogCreateResult.model_validate(log)
