"""
FastAPI main application for the Book Store API.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.database import BookDatabaseService
from api.errors import BookStoreError, NotFound, ServerError, ValidationError, error_body
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes import router as books_router
from api.uploads import CoverStorage
from api.validators import describe_error
from utilities.config import BookStoreConfig, config
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: BookStoreConfig = app.state.settings
    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.get_log_file_path(),
        debug=settings.debug
    )
    logger.info("Starting Book Store API")

    # Initialize database connection
    client = AsyncIOMotorClient(settings.mongodb_url)
    service = BookDatabaseService(client[settings.mongodb_database], settings.mongodb_collection)
    try:
        await service.ping()
    except ServerError as e:
        logger.error("Failed to connect to database", error=e.describe())
        client.close()
        raise

    logger.info(
        "Database connection established",
        database=settings.mongodb_database,
        collection=settings.mongodb_collection
    )
    app.state.book_service = service

    yield

    # Shutdown
    logger.info("Shutting down Book Store API")
    app.state.book_service = None
    client.close()


def _error_response(exc: BookStoreError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def book_store_error_handler(request: Request, exc: BookStoreError):
    """Handle errors raised by handlers, validators and the record store."""
    if isinstance(exc, ServerError):
        logger.error("Request failed", path=request.url.path, error=exc.describe())
    return _error_response(exc)


async def pymongo_error_handler(request: Request, exc: PyMongoError):
    """Driver errors that escaped the record store."""
    logger.error("Database error", path=request.url.path, error=str(exc))
    return _error_response(ServerError(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report FastAPI parameter errors in the same shape as body validation."""
    details = [
        ErrorDetail(message=describe_error(err), path=list(err.get("loc") or ()))
        for err in exc.errors()
    ]
    return _error_response(ValidationError(details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unmatched paths and methods become NotFound."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return _error_response(NotFound())
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions. The cause is only exposed in debug mode."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    debug = request.app.state.settings.debug
    return _error_response(ServerError(exc if debug else None))


def create_app(settings: Optional[BookStoreConfig] = None) -> FastAPI:
    """
    Build the application.

    The record store is attached to app.state by the lifespan; handlers reach
    it through api.dependencies.
    """
    settings = settings or config

    app = FastAPI(
        title="Book Store API",
        description="""
        CRUD REST API for a catalogue of books stored in MongoDB.

        ## Features

        * **Books**: list, fetch, add, replace and delete books
        * **Covers**: upload a JPEG, PNG, WebP or GIF cover image (up to 2 MiB by default)

        ## Errors

        Every error body carries a `message`; validation failures add a
        `details` array with one entry per offending field.
        """,
        version="1.0.0",
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.book_service = None
    app.state.cover_storage = CoverStorage(
        upload_dir=settings.get_upload_dir_path(),
        max_bytes=settings.max_cover_bytes,
        allowed_content_types=settings.allowed_cover_types,
        url_prefix=settings.uploads_url_prefix,
        public_base_url=settings.public_base_url,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1)
        )
        return response

    # Exception handlers
    app.add_exception_handler(BookStoreError, book_store_error_handler)
    app.add_exception_handler(PyMongoError, pymongo_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Liveness probe; answers whenever the process is serving."""
        return HealthResponse()

    app.include_router(books_router)

    # Uploaded covers
    upload_dir = settings.get_upload_dir_path()
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=upload_dir),
        name="uploads"
    )

    return app


# Create FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
