"""
ProjectRepo Backend - Request Logging Middleware
=================================================

What:  One access log line per request on the `projectrepo.access` logger.
How:   Times the downstream handler and logs method, path, status, duration,
       request ID and client IP. Uploads also log their declared size. The
       same values are attached as `extra` fields for structured handlers.

Level by status:
    5xx                         → ERROR
    401/429 on /api/auth/*      → WARNING (failed logins, code guessing)
    other 4xx                   → INFO (permission and lookup misses are routine)
    everything else             → INFO

Not logged: request bodies (passwords, one-time codes), uploaded files,
Authorization headers.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from projectrepo.middleware.request_id import request_id_var

logger = logging.getLogger("projectrepo.access")

QUIET_PATHS = {"/health"}
AUTH_PREFIX = "/api/auth/"


def level_for(status: int, path: str) -> int:
    if status >= 500:
        return logging.ERROR
    if status in (401, 429) and path.startswith(AUTH_PREFIX):
        return logging.WARNING
    return logging.INFO


def _upload_size(request: Request) -> Optional[int]:
    if not request.headers.get("content-type", "").startswith("multipart/form-data"):
        return None
    declared = request.headers.get("content-length")
    return int(declared) if declared and declared.isdigit() else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        upload_bytes = _upload_size(request)

        fields = {
            "request_id": rid,
            "method": request.method,
            "path": path,
            "status": status,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
        }
        message = "%s %s %d %.1fms [%s] from %s"
        args = [request.method, path, status, duration_ms, rid, client_ip]
        if upload_bytes is not None:
            fields["upload_bytes"] = upload_bytes
            message += " upload=%dB"
            args.append(upload_bytes)

        logger.log(level_for(status, path), message, *args, extra=fields)
        return response
