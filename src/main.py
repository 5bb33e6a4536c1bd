import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config import get_settings
from src.db.factory import make_database
from src.db.redis.redis import get_redis_client
from src.exceptions import AppError
from src.middlewares import log_error, request_logging_middleware, sanitize_metadata
from src.routers import auth, flashcards, generate, ping, profile, sessions
from src.schemas.api.common import ErrorBody, ErrorResponse
from src.services.openrouter.factory import make_openrouter_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
    503: "SERVICE_UNAVAILABLE",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan for the API.
    """
    logger.info("Starting FlashDeck API...")

    settings = get_settings()
    app.state.settings = settings

    database = make_database()
    app.state.database = database
    logger.info("Database connected")

    app.state.redis = get_redis_client()
    app.state.openrouter_client = make_openrouter_client()
    logger.info(f"Services initialized: Redis, OpenRouter (model={settings.openrouter_model})")

    if not settings.generation_locks_enabled:
        logger.warning(
            "Generation locks are disabled: concurrent generations may exceed the daily limit "
            "and a session may be accepted twice"
        )

    logger.info("API ready")
    yield

    # Cleanup
    await app.state.redis.aclose()
    database.teardown()
    logger.info("API shutdown complete")


def error_response(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log_error(f"{exc.code}: {exc.message}", request.method, request.url.path)
    return error_response(exc.status_code, exc.code, exc.public_message, exc.details, exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc) or "request", "message": error.get("msg", "Invalid value")})
    return error_response(400, "VALIDATION_ERROR", "Invalid input data", {"fields": fields})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "INTERNAL_ERROR")
    return error_response(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Unhandled database error",
        extra=sanitize_metadata({"method": request.method, "path": request.url.path, "error": str(exc)}),
    )
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(str(exc), request.method, request.url.path)
    if get_settings().debug:
        logger.error(traceback.format_exc())
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="FlashDeck",
        description="Spaced-repetition flashcards with AI-assisted card generation.",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    for module in (ping, auth, profile, flashcards, generate, sessions):
        app.include_router(module.router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, port=8000, host="0.0.0.0")
