"""Bearer token check and per-client rate limit for the POST routes"""

import secrets
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


class TokenAuth:
    """Shared-secret bearer token, generated when none is configured"""

    def __init__(self, token: Optional[str] = None):
        self.token = token or secrets.token_urlsafe(32)

    def verify(self, presented: Optional[str]) -> bool:
        return presented is not None and secrets.compare_digest(presented, self.token)


class RateLimiter:
    """At most `max_requests` per client inside a sliding `window_seconds`"""

    def __init__(self, max_requests: int = 10, window_seconds: float = 1.0):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._seen: Dict[str, Deque[float]] = defaultdict(deque)

    def is_allowed(self, client_id: str) -> bool:
        now = time.monotonic()
        seen = self._seen[client_id]
        while seen and seen[0] <= now - self.window_seconds:
            seen.popleft()
        if len(seen) >= self.max_requests:
            return False
        seen.append(now)
        return True


def create_request_guard(token_auth: TokenAuth, rate_limiter: RateLimiter):
    """Dependency rejecting bad tokens (401) and then busy clients (429)"""
    bearer = HTTPBearer(auto_error=False)

    async def guard(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)):
        if not token_auth.verify(credentials.credentials if credentials else None):
            raise HTTPException(status_code=401, detail="Invalid authentication token", headers={"WWW-Authenticate": "Bearer"})
        client_id = request.client.host if request.client else "unknown"
        if not rate_limiter.is_allowed(client_id):
            raise HTTPException(status_code=429, detail="Rate limit exceeded", headers={"Retry-After": "1"})

    return guard
