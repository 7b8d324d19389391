import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger import jsonlogger

from demo.metrics import record_http_request


# Context variable to store request_id for the current request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding an ISO-8601 timestamp, the level and the request_id."""

    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('ts'):
            log_record['ts'] = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'
        log_record['level'] = record.levelname

        if 'request_id' not in log_record:
            req_id = request_id_ctx.get()
            if req_id:
                log_record['request_id'] = req_id


def setup_logging(log_level: str = "INFO"):
    """
    Setup structured JSON logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger()
    logger.setLevel(log_level.upper())

    # Remove existing handlers
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        '%(ts)s %(level)s %(name)s %(message)s'
    )
    json_handler.setFormatter(formatter)

    logger.addHandler(json_handler)

    # Route Uvicorn loggers through the JSON handler
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = []
        uvicorn_logger.addHandler(json_handler)
        uvicorn_logger.propagate = False

    # RequestLoggingMiddleware replaces the access log
    logging.getLogger("uvicorn.access").disabled = True

    return logger


def route_path(request: Request) -> str:
    """Matched route template (e.g. /{message_id}), or the raw path when no route matched."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every HTTP request as one JSON line and record request metrics.

    Log keys: request_id, method, path, status, latency_ms.
    POST / requests add message_id (when known) and result.
    The request id is also returned in the X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        token = request_id_ctx.set(request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            latency_seconds = time.time() - start_time
            latency_ms = round(latency_seconds * 1000, 2)

            if request.url.path != "/metrics":
                record_http_request(
                    method=request.method,
                    path=route_path(request),
                    status=response.status_code,
                    latency_seconds=latency_seconds
                )

            log_data = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": latency_ms,
            }

            if hasattr(request.state, "write_log_data"):
                log_data.update(request.state.write_log_data)

            logger = logging.getLogger("demo.requests")

            if response.status_code >= 500:
                logger.error("Request completed", extra=log_data)
            elif response.status_code >= 400:
                logger.warning("Request completed", extra=log_data)
            else:
                logger.info("Request completed", extra=log_data)

            return response
        finally:
            request_id_ctx.reset(token)


def log_write_data(request: Request, message_id: Optional[str] = None, result: Optional[str] = None):
    """
    Attach message-write fields to the request state.
    The middleware merges them into the request log line.

    Args:
        request: FastAPI request object
        message_id: Id of the message being saved, when known
        result: created, duplicate, validation_error or unavailable
    """
    write_data = {}

    if message_id is not None:
        write_data["message_id"] = message_id

    if result is not None:
        write_data["result"] = result

    request.state.write_log_data = write_data
