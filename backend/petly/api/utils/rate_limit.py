import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status

from ...api.deps import get_current_user
from ...core.config import settings
from ...db import models


class RateLimiter:
    """Fixed-window request counter kept in process memory."""

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        """Count a request; return seconds to wait when over the limit."""
        now = time.monotonic() if now is None else now
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.limit:
                return max(1, int(started + self.window_seconds - now))
            self._windows[key] = (started, count + 1)
            return None

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


chat_limiter = RateLimiter(settings.chat_rate_limit_per_minute, 60)
auth_limiter = RateLimiter(settings.auth_rate_limit, 15 * 60)


def _reject(retry_after: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests, please try again later",
        headers={"Retry-After": str(retry_after)},
    )


def chat_rate_limit(current_user: models.User = Depends(get_current_user)) -> models.User:
    retry_after = chat_limiter.hit(str(current_user.id))
    if retry_after:
        raise _reject(retry_after)
    return current_user


def auth_rate_limit(request: Request) -> None:
    client = request.client.host if request.client else "unknown"
    retry_after = auth_limiter.hit(client)
    if retry_after:
        raise _reject(retry_after)
