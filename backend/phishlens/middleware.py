"""
Middleware: Rate Limiting
─────────────────────────
Sliding-window, in-memory, keyed by client IP. Every request counts toward
the global window; POSTs to the analysis and reload endpoints also count
toward their own tighter window.
"""

import logging
import math
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger("phishlens.middleware")

ENDPOINT_LIMITS = {
    "/analyze/url": 60,
    "/analyze/text": 60,
    "/analyze/image": 30,
    "/catalog/reload": 5,
}

# Health probes and docs always answer
EXEMPT_PATHS = frozenset({"/", "/health", "/openapi.json", "/docs", "/redoc"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, global_limit: int = 120, window: int = 60,
                 endpoint_limits: Optional[Dict[str, int]] = None):
        super().__init__(app)
        self.global_limit = global_limit
        self.window = window
        self.endpoint_limits = ENDPOINT_LIMITS if endpoint_limits is None else endpoint_limits
        self.buckets: Dict[str, Deque[float]] = defaultdict(deque)

    def _retry_after(self, key: str, limit: int, now: float) -> Optional[int]:
        """Seconds until ``key`` may retry, or None after recording the hit."""
        bucket = self.buckets[key]
        while bucket and bucket[0] <= now - self.window:
            bucket.popleft()
        if len(bucket) >= limit:
            return max(1, math.ceil(bucket[0] + self.window - now))
        bucket.append(now)
        return None

    def _too_many(self, detail: str, retry_after: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"detail": detail},
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next):
        path = request.url.path.rstrip("/") or "/"
        if path in EXEMPT_PATHS:
            return await call_next(request)

        ip = request.client.host if request.client else "0.0.0.0"
        now = time.monotonic()

        wait = self._retry_after(f"g:{ip}", self.global_limit, now)
        if wait is not None:
            logger.info("Global rate limit hit for %s", ip)
            return self._too_many("Too many requests. Slow down.", wait)

        limit = self.endpoint_limits.get(path)
        if request.method == "POST" and limit is not None:
            wait = self._retry_after(f"e:{ip}:{path}", limit, now)
            if wait is not None:
                logger.info("Rate limit hit for %s on %s", ip, path)
                return self._too_many(f"Rate limit exceeded for {path}", wait)

        return await call_next(request)
