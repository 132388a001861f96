from datetime import timedelta
from typing import Any, Dict, Optional
import hashlib
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext

from ..core.config import settings
from ..core.timeutils import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

GUEST_EMAIL_DOMAIN = "guest.petly.app"


# SHA256 → fixed 64 chars → safe for bcrypt
def _normalize_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_normalize_password(plain_password), hashed_password)

def get_password_hash(password: str) -> str:
    normalized = _normalize_password(password)
    return pwd_context.hash(normalized)

def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": subject,
        "exp": expire,
        "iat": now,
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc

def guest_user_id(device_id: str) -> uuid.UUID:
    """Same device, same guest account."""
    digest = hashlib.md5(f"guest-{device_id}".encode("utf-8")).hexdigest()
    return uuid.UUID(digest)

def guest_email(device_id: str) -> str:
    return f"guest-{guest_user_id(device_id).hex[:12]}@{GUEST_EMAIL_DOMAIN}"
