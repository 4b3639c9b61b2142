import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gamediary.db.connection import (
    dispose_engine,
    get_engine,
    get_session_factory,
    init_models,
    sanitize_database_url,
)
from gamediary.errors import CurationError
from gamediary.services.engine import CurationEngine
from gamediary.settings import AppSettings, get_settings
from gamediary.store.sqlalchemy_store import SqlAlchemyRecordStore

from .api import favorites, game_logs, lists
from .schemas.error import ErrorType, ValidationErrorDetail
from .utils.error_responses import (
    build_curation_error_response,
    build_error_response,
    build_validation_error_response,
)
from .utils.request_context import (
    REQUEST_ID_HEADER,
    get_request_id,
    new_request_id,
    set_request_id,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log a warning block for every optional setting left unset."""

    warnings = (active_settings or settings).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  • %s", warning)
        logger.warning("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, build the curation engine and drain it on shutdown."""
    validate_environment()

    logger.info("=" * 60)
    logger.info("Game Diary API - Database Preflight Check")
    logger.info("=" * 60)
    logger.info("Database Type: %s", settings.database_type.upper())
    logger.info("Database URL: %s", sanitize_database_url(settings.resolved_database_url))
    logger.info("Favorite slots: %d", settings.favorite_slots)
    logger.info("=" * 60)

    await init_models(get_engine())
    app.state.engine = CurationEngine(
        SqlAlchemyRecordStore(get_session_factory()), settings
    )

    yield

    logger.info("Shutting down Game Diary API")
    await app.state.engine.close()
    await dispose_engine()


app = FastAPI(
    title="Game Diary API",
    version="0.1.0",
    description="Game logs, ranked favorites and ordered game lists.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), settings.cors_allow_origins)
logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag every request and response with a request identifier."""
    request_id = new_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(CurationError)
async def curation_exception_handler(request: Request, exc: CurationError):
    """Translate curation errors into their HTTP status and error type."""
    error_response = build_curation_error_response(exc, path=str(request.url.path))

    log = logger.warning if error_response.status_code >= 500 else logger.info
    log(
        "%s for request %s to %s: %s",
        type(exc).__name__,
        get_request_id(),
        request.url.path,
        exc,
    )

    headers = {}
    if error_response.retry_after is not None:
        headers["Retry-After"] = str(error_response.retry_after)
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.model_dump(mode="json"),
        headers=headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s",
        get_request_id(),
        request.url.path,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


app.include_router(game_logs.router, prefix="/logs", tags=["game-logs"])
app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
app.include_router(lists.router, prefix="/lists", tags=["lists"])


@app.get("/health")
async def health():
    return {"status": "ok"}
