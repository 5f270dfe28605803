from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import settings, setup_logging
from app.dependencies import build_container
from app.schemas import ErrorResponse
from app.services import CacheError, EPGScheduler, ErrorKind
from app.services.epg_client import AiringStreamSource

from app.routers import main_router, shows_router


setup_logging()
logger = logging.getLogger(__name__)

# One entry per error kind: (HTTP status, user-facing message)
ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.NOT_FOUND: (404, "No data found for the requested date."),
    ErrorKind.INVALID_ARGUMENT: (400, "Invalid request to the server."),
    ErrorKind.UPSTREAM_UNAVAILABLE: (503, "Provider service is not available."),
    ErrorKind.UPSTREAM_PROTOCOL_ERROR: (502, "An error occurred while processing provider data."),
    ErrorKind.STORE_ERROR: (500, "An unexpected error occurred."),
}

_unmapped = set(ErrorKind) - set(ERROR_RESPONSES)
if _unmapped:
    raise RuntimeError(f"Error kinds without an HTTP mapping: {sorted(k.value for k in _unmapped)}")


def _error_response(status_code: int, technical_message: str, user_message: str, exc: Exception) -> JSONResponse:
    """Build an error response with a fresh error ID and log it."""
    error_id = str(uuid.uuid4())
    logger.error(
        "Error ID: %s | Status: %s | Technical Message: %s",
        error_id,
        status_code,
        technical_message,
        exc_info=exc,
    )
    body = ErrorResponse(
        error_id=error_id,
        technical_message=technical_message,
        user_message=user_message,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def create_app(source: AiringStreamSource | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        source: Stream source to use instead of the HTTP EPG client (mainly for testing)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events"""
        logger.info("Starting TV Program Frequency Service...")

        try:
            container = build_container(settings, source)
            app.state.container = container

            scheduler = EPGScheduler.from_settings(container.cache_service, settings)
            scheduler.start()
            app.state.scheduler = scheduler

            logger.info("TV Program Frequency Service started successfully")
        except Exception as e:
            logger.error(f"Failed to start TV Program Frequency Service: {e}", exc_info=True)
            raise

        yield

        logger.info("Shutting down TV Program Frequency Service...")

        try:
            app.state.scheduler.shutdown()
        except Exception as e:
            logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

        try:
            await app.state.container.aclose()
        except Exception as e:
            logger.error(f"Error closing EPG client: {e}", exc_info=True)

        logger.info("TV Program Frequency Service stopped")

    app = FastAPI(
        title="TV Program Frequency Service",
        version="0.1.0",
        lifespan=lifespan
    )

    app.include_router(main_router)
    app.include_router(shows_router)

    @app.exception_handler(CacheError)
    async def cache_error_handler(request: Request, exc: CacheError):
        """Translate cache error kinds into HTTP responses"""
        status_code, user_message = ERROR_RESPONSES[exc.kind]
        logger.info(f"{request.method} {request.url.path} failed with {exc.kind.value}")
        return _error_response(status_code, exc.message, user_message, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Log validation errors with details"""
        logger.error(f"Validation error for {request.method} {request.url.path}")
        logger.error(f"Validation details: {exc.errors()}")

        # Create a properly serializable error response
        errors = []
        for error in exc.errors():
            error_dict = {
                "type": error.get("type"),
                "loc": error.get("loc"),
                "msg": error.get("msg"),
                "input": str(error.get("input", ""))[:100]
            }
            errors.append(error_dict)

        return JSONResponse(
            status_code=422,
            content={
                "detail": errors
            }
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Last resort for errors outside the known kinds"""
        return _error_response(500, str(exc), "An unexpected error occurred.", exc)

    return app


app = create_app()
