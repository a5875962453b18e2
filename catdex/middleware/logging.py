"""
Catdex — Request Logging Middleware
=====================================

What:  One access log line per request: method, path, status, duration, client,
       plus what the request did to the catalog.
How:   Level follows the status class so 5xx responses can be alerted on:
           5xx → ERROR, 4xx → WARNING, everything else → INFO
       Handlers leave outcome fields on request.state and they are appended
       to the line:
           cat=<id>           a record was created (POST /api/add_cat)
           error=<kind>       the ErrorKind behind a 4xx/5xx
           upload=<bytes>     declared multipart body size
       Request bodies (uploads) are never logged.

Example:
    POST /api/add_cat 201 12.4ms [3f2a...] from 127.0.0.1 cat=7 upload=48213
    GET /api/cats 500 5003.1ms [9c1e...] from 127.0.0.1 error=db_pool_exhausted
"""

import logging
import time
from typing import Any, Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from catdex.middleware.request_id import request_id_var

logger = logging.getLogger("catdex.access")

# Probes run every few seconds; logging them buries real traffic
_QUIET_PATHS = {"/health"}


def _level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _outcome_fields(request: Request) -> Dict[str, Any]:
    """Fields set by handlers on request.state, plus the upload size."""
    fields: Dict[str, Any] = {}
    cat_id = getattr(request.state, "cat_id", None)
    if cat_id is not None:
        fields["cat"] = cat_id
    error_kind = getattr(request.state, "error_kind", None)
    if error_kind:
        fields["error"] = error_kind
    content_type = request.headers.get("content-type", "")
    content_length = request.headers.get("content-length")
    if content_type.startswith("multipart/") and content_length and content_length.isdigit():
        fields["upload"] = int(content_length)
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        outcome = _outcome_fields(request)

        parts: List[str] = [
            f"{request.method} {request.url.path} {status} {duration_ms:.1f}ms [{rid}] from {client_ip}"
        ]
        parts.extend(f"{key}={value}" for key, value in outcome.items())

        logger.log(
            _level_for_status(status),
            " ".join(parts),
            extra={
                "request_id": rid,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                **outcome,
            },
        )
        return response
