"""Request logging middleware

Binds a request id into structlog context for every request so adapter and
orchestrator log entries can be correlated with the HTTP call that caused them.
"""

import time
import uuid

from fastapi import Request
import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

SLOW_REQUEST_SECONDS = 30.0


async def request_logging_middleware(request: Request, call_next):
    """Log request start/end with a correlation id"""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    bind_contextvars(request_id=request_id)

    logger = structlog.get_logger("chatgate.requests")
    client_ip = request.client.host if request.client else None
    start_time = time.time()

    logger.info("Request started",
                method=request.method,
                path=request.url.path,
                client_ip=client_ip)

    try:
        response = await call_next(request)

        duration = time.time() - start_time
        logger.info("Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2))

        response.headers["X-Request-ID"] = request_id

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning("Slow request detected",
                           duration_ms=round(duration * 1000, 2),
                           path=request.url.path)
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error("Request failed",
                     method=request.method,
                     path=request.url.path,
                     duration_ms=round(duration * 1000, 2),
                     error=str(e),
                     error_type=type(e).__name__)
        raise

    finally:
        clear_contextvars()
