"""
Logging middleware for request/response tracking.

Logs every request with its status and timing.
"""

import logging
import time
import uuid
from typing import Callable

from aiohttp import web

logger = logging.getLogger(__name__)


@web.middleware
async def logging_middleware(request: web.Request, handler: Callable):
    """Log method, path, status and duration of each request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request["request_id"] = request_id
    start_time = time.monotonic()

    try:
        response = await handler(request)
    except web.HTTPException as e:
        duration = time.monotonic() - start_time
        logger.info(
            f"{request.method} {request.path} -> {e.status} in {duration:.3f}s",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.path,
                "status": e.status,
                "duration": duration,
            },
        )
        raise
    except Exception as e:
        duration = time.monotonic() - start_time
        logger.error(
            f"{request.method} {request.path} failed after {duration:.3f}s: {e}",
            exc_info=True,
            extra={"request_id": request_id, "method": request.method, "path": request.path, "duration": duration},
        )
        raise

    duration = time.monotonic() - start_time
    logger.info(
        f"{request.method} {request.path} -> {response.status} in {duration:.3f}s",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.path,
            "status": response.status,
            "duration": duration,
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response
