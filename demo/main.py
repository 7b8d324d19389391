import logging
from contextlib import asynccontextmanager
from typing import Annotated, List

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from demo.config import settings
from demo.errors import (
    ConstraintViolation,
    InvalidArgument,
    MessageError,
    StorageUnavailable,
    message_error_handler,
)
from demo.logging_utils import setup_logging, RequestLoggingMiddleware, log_write_data
from demo.metrics import record_write_outcome, get_metrics, get_metrics_content_type
from demo.schemas import ErrorResponse, HealthResponse, Message
from demo.service import MessageService
from demo.storage import SessionLocal, MessageStore, check_db_health, init_db


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create the messages table if missing and build the
    store/service pair shared by all requests.
    """
    init_db()
    app.state.message_service = MessageService(MessageStore(SessionLocal))
    yield


app = FastAPI(
    title="Message Demo",
    description="Minimal message service: list, fetch by id and create messages",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(MessageError, message_error_handler)


def get_message_service(request: Request) -> MessageService:
    """Dependency returning the MessageService built at startup."""
    return request.app.state.message_service


ServiceDep = Annotated[MessageService, Depends(get_message_service)]


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one line, e.g. 'text: Field required'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "body"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness probe - always returns 200 once the app is running."""
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
def health_ready(response: Response) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the DB is reachable and the
    messages table exists, otherwise 503.
    """
    if not check_db_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text exposition format."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )


# =============================================================================
# Greeting Route
# =============================================================================

@app.get("/hello", response_class=PlainTextResponse)
async def hello(name: Annotated[str, Query(description="Name to greet")]) -> str:
    """Plain-text greeting: GET /hello?name=World -> Hello, World!"""
    return f"Hello, {name}!"


# =============================================================================
# Message Routes
# =============================================================================
# Registered after the fixed routes above: /{message_id} would shadow them.

@app.get("/", response_model=List[Message])
def list_messages(service: ServiceDep) -> List[Message]:
    """Return every stored message as a JSON array."""
    messages = service.find_all()
    logger.info(f"GET /: returned {len(messages)} messages")
    return messages


@app.post(
    "/",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        409: {"model": ErrorResponse, "description": "Message id already exists"},
        422: {"model": ErrorResponse, "description": "Invalid message body"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    }
)
async def create_message(request: Request, service: ServiceDep) -> Response:
    """
    Store a message.

    Body: {"text": "...", "id": "..."} - id is optional and generated when
    absent or empty. Responds with an empty 200 on success.
    """
    raw_body = await request.body()
    logger.debug(f"Request body size: {len(raw_body)} bytes")

    try:
        message = Message.model_validate_json(raw_body)
    except ValidationError as e:
        detail = describe_validation_error(e)
        logger.warning(f"Validation error: {detail}")
        record_write_outcome("validation_error")
        log_write_data(request=request, result="validation_error")
        raise InvalidArgument(detail) from e

    try:
        await run_in_threadpool(service.save, message)
    except ConstraintViolation:
        record_write_outcome("duplicate")
        log_write_data(request=request, message_id=message.id, result="duplicate")
        raise
    except InvalidArgument:
        record_write_outcome("validation_error")
        log_write_data(request=request, message_id=message.id, result="validation_error")
        raise
    except StorageUnavailable:
        record_write_outcome("unavailable")
        log_write_data(request=request, message_id=message.id, result="unavailable")
        raise

    logger.info("Message saved")
    record_write_outcome("created")
    log_write_data(request=request, message_id=message.id, result="created")
    return Response(status_code=status.HTTP_200_OK)


@app.get("/{message_id}", response_model=List[Message])
def get_message(message_id: str, service: ServiceDep) -> List[Message]:
    """
    Return the message with this id as a one-element array, or an empty
    array when there is none.
    """
    messages = service.find_by_id(message_id)
    logger.info(f"GET /{message_id}: {'found' if messages else 'not found'}")
    return messages
