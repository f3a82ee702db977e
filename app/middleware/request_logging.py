import time
import uuid
import logging
from fastapi import Request

logger = logging.getLogger("access")

REQUEST_ID_HEADER = "X-Request-ID"

# health checks hit these every few seconds
QUIET_PATHS = {"/health"}


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers[REQUEST_ID_HEADER] = request_id

    if request.url.path in QUIET_PATHS and response.status_code < 400:
        return response

    # query strings are left out: they may carry tokens
    logger.log(
        _level_for(response.status_code),
        "",
        extra={
            "request_id": request_id,
            "client_addr": request.client.host if request.client else "unknown",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": elapsed_ms,
        },
    )

    return response
