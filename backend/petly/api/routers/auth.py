import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ...api.utils.rate_limit import auth_rate_limit
from ...core.config import settings
from ...core.security import (
    create_access_token,
    get_password_hash,
    guest_email,
    guest_user_id,
    verify_password,
)
from ...db import models
from ...db.session import get_db
from ...schemas.token import GuestLogin, Token
from ...schemas.user import UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(auth_rate_limit)])


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def signup(user_in: UserCreate, db: Session = Depends(get_db)) -> models.User:
    email = user_in.email.lower()
    existing = db.query(models.User).filter(models.User.email == email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with that email already exists.",
        )
    user = models.User(
        email=email,
        password_hash=get_password_hash(user_in.password),
        full_name=user_in.full_name,
        auth_provider="email",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("[AUTH] New account %s", user.id)
    return user


@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> Token:
    user = db.query(models.User).filter(models.User.email == form_data.username.lower()).first()
    if user and not user.password_hash:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="This account uses a different sign-in method",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(subject=str(user.id))
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/guest", response_model=Token)
async def guest_login(payload: GuestLogin, db: Session = Depends(get_db)) -> Token:
    device_id = payload.device_id.strip()
    if not device_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device ID is required")
    user_id = guest_user_id(device_id)
    user = db.get(models.User, user_id)
    if user is None:
        user = models.User(
            id=user_id,
            email=guest_email(device_id),
            full_name="Guest",
            auth_provider="guest",
        )
        db.add(user)
        db.commit()
        logger.info("[AUTH] New guest account %s", user_id)
    access_token = create_access_token(
        subject=str(user_id),
        expires_delta=timedelta(minutes=settings.guest_token_expire_minutes),
        extra_claims={"is_guest": True},
    )
    return {"access_token": access_token, "token_type": "bearer"}
