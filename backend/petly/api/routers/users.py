from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...api.utils.ownership import require_updates
from ...core.security import get_password_hash
from ...db import models
from ...db.session import get_db
from ...schemas.user import UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    return current_user


@router.patch("/me", response_model=UserRead)
async def update_current_user(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    payload_data = require_updates(payload.model_dump(exclude_unset=True))
    password = payload_data.pop("password", None)
    if password:
        current_user.password_hash = get_password_hash(password)
    email = payload_data.pop("email", None)
    if email:
        email = email.lower()
        taken = (
            db.query(models.User)
            .filter(models.User.email == email, models.User.id != current_user.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
        current_user.email = email
    for field, value in payload_data.items():
        setattr(current_user, field, value)
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_current_user(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    db.delete(current_user)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
