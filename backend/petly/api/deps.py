from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..core.security import decode_access_token
from ..db import models
from ..db.session import get_db
from ..schemas.token import TokenPayload

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _read_token(token: str) -> TokenPayload:
    try:
        return TokenPayload(**decode_access_token(token))
    except ValueError:
        raise _unauthorized()


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> models.User:
    token_data = _read_token(token)
    if not token_data.sub:
        raise _unauthorized("Token payload missing user identifier")
    try:
        user_id = UUID(token_data.sub)
    except ValueError:
        raise _unauthorized()
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    # A guest token only ever opens the guest account it was minted for.
    if token_data.is_guest and not user.is_guest:
        raise _unauthorized()
    return user
