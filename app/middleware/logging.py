import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers; only logged when unhealthy.
QUIET_PATHS = {"/health"}


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs its outcome and duration.

    An incoming ``X-Request-ID`` is kept so ids can be traced across the
    auth provider and this service. Error envelopes reuse the same id.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else None
        log_extra = {"request_id": request_id, "method": method, "path": path, "client_ip": client_ip}

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"[{request_id}] {method} {path} - unhandled {type(exc).__name__}",
                extra={**log_extra, "duration_ms": _elapsed_ms(start_time), "error": str(exc)}
            )
            raise

        duration_ms = _elapsed_ms(start_time)
        status_code = response.status_code
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
        elif path in QUIET_PATHS:
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            f"[{request_id}] {method} {path} - {status_code} ({duration_ms}ms)",
            extra={**log_extra, "status_code": status_code, "duration_ms": duration_ms}
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
