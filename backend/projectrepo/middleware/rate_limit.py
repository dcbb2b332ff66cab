"""
ProjectRepo Backend - Rate Limiting Middleware
===============================================

What:  Per-IP sliding window rate limiter with two buckets.
How:   Keeps recent request timestamps per (bucket, IP) in memory; a request
       that would exceed its bucket's limit gets 429 with Retry-After.

Buckets:
    auth     /api/auth/*  AUTH_RATE_LIMIT_REQUESTS per AUTH_RATE_LIMIT_WINDOW
             (login attempts and one-time code guesses)
    general  everything else  RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW

Single-process only: state lives in this worker's memory.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from projectrepo.config import settings
from projectrepo.exceptions import RateLimitExceededError
from projectrepo.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

AUTH_PREFIX = "/api/auth/"
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._seen = 0

    @staticmethod
    def _bucket(path: str) -> Tuple[str, int, int]:
        """Returns (name, limit, window_seconds) for a request path."""
        if path.startswith(AUTH_PREFIX):
            return "auth", settings.auth_rate_limit_requests, settings.auth_rate_limit_window
        return "general", settings.rate_limit_requests, settings.rate_limit_window

    def check(self, client_ip: str, path: str, now: Optional[float] = None) -> None:
        """
        Record one request, or raise if the bucket is full.

        Raises:
            RateLimitExceededError: with the seconds until the oldest entry expires.
        """
        now = time.time() if now is None else now
        bucket, limit, window = self._bucket(path)
        key = (bucket, client_ip)
        window_start = now - window

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= limit:
            retry_after = int(timestamps[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s (%s bucket): %d requests in %ds window",
                client_ip,
                bucket,
                len(timestamps),
                window,
            )
            raise RateLimitExceededError(retry_after=retry_after, context={"bucket": bucket})

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive(now)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self.check(client_ip, path)
        except RateLimitExceededError as e:
            # Middleware runs outside the app's exception handlers
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": e.message,
                    "details": {"retry_after": e.retry_after},
                    "request_id": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(e.retry_after)},
            )

        return await call_next(request)

    def _cleanup_inactive(self, now: float) -> None:
        """Drops keys whose newest request has left the longest window."""
        horizon = now - max(settings.rate_limit_window, settings.auth_rate_limit_window)
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < horizon
        ]
        for key in inactive:
            del self._requests[key]
        if inactive:
            logger.debug("Cleaned up %d inactive rate limit entries", len(inactive))
