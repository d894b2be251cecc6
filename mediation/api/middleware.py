"""
API middleware
"""
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from mediation.utils.logger import get_logger
from mediation.utils.helpers import mask_personal_info

logger = get_logger(__name__)

# Probes would drown the request log
QUIET_PATHS = {"/health"}

BODY_LOG_LIMIT = 2000


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware

    Every request gets an X-Request-ID (taken from the gateway when present)
    that is echoed on the response and prefixed to each log line. Request
    bodies carry party contact details, so they are masked and only logged at
    DEBUG.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        caller = request.headers.get("x-caller-id") or "-"
        role = request.headers.get("x-caller-role") or "-"
        route = f"{request.method} {request.url.path}"
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        if not quiet:
            logger.info(f"[{request_id}] {route} caller={caller} role={role}")

        if request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            if body:
                try:
                    text = body.decode("utf-8")
                except UnicodeDecodeError:
                    logger.warning(f"[{request_id}] request body is not UTF-8, not logged")
                else:
                    logger.debug(f"[{request_id}] body: {mask_personal_info(text[:BODY_LOG_LIMIT])}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {route} failed after {time.perf_counter() - started:.3f}s: {str(e)}"
            )
            raise

        elapsed = time.perf_counter() - started
        if not quiet:
            logger.info(f"[{request_id}] {route} -> {response.status_code} ({elapsed:.3f}s)")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response
