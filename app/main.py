import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.dependencies import get_db
from app.api.v1 import router as api_router
from app.config.config import settings
from app.core.responses import envelope_response, outcome_response
from app.core.utils import configure_logging
from app.db.base import Base
from app.db.session import engine

from app import models  # noqa: F401  registers every table on Base.metadata


logger = logging.getLogger("uvicorn")
request_logger = logging.getLogger("app.requests")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup & Shutdown lifespan events."""
    # -------- STARTUP --------
    configure_logging()
    logger.info("Starting FastAPI application...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.DB_AUTO_CREATE:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created.")

        logger.info("Database connection established successfully.")

    except Exception as e:
        logger.error(f"Startup initialization failed: {e}", exc_info=True)
        logger.error("Application may not function correctly")

    yield

    # -------- SHUTDOWN --------
    logger.info("Shutting down application...")
    await engine.dispose()
    logger.info("Database engine disposed")


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into ``field: message; field: message``."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Validation failed"


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # ---------------------- EXCEPTION HANDLERS ----------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return envelope_response(
            exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return envelope_response(status.HTTP_400_BAD_REQUEST, format_validation_errors(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return envelope_response(
            status.HTTP_409_CONFLICT, "Resource conflicts with an existing record"
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled Error: {exc}", exc_info=exc)
        return envelope_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error" if settings.is_production else str(exc),
        )

    # ---------------------- REQUEST LOGGING ----------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        request_logger.info(f"Incoming request: {request.method} {request.url.path}")
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        request_logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response

    # ---------------------- HTTPS REDIRECT ----------------------
    @app.middleware("http")
    async def https_redirect(request: Request, call_next):
        if settings.is_production:
            if request.headers.get("x-forwarded-proto") == "http":
                return RedirectResponse(str(request.url.replace(scheme="https")))
        return await call_next(request)

    # ---------------------- CORS ----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=6)

    # ---------------------- ROUTES ----------------------
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ---------------------- HEALTH CHECK ----------------------
    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        try:
            await db.execute(text("SELECT 1"))
            return envelope_response(
                status.HTTP_200_OK,
                "Service is healthy",
                {
                    "status": "healthy",
                    "environment": settings.ENVIRONMENT,
                    "database": "connected",
                },
            )
        except Exception as e:
            logger.error(f"Health check failed: {e}", exc_info=True)
            return envelope_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "Service is unhealthy",
                {"status": "unhealthy", "database": "disconnected"},
            )

    @app.get("/")
    async def root():
        return outcome_response(
            {
                "name": settings.PROJECT_NAME,
                "version": settings.VERSION,
                "environment": settings.ENVIRONMENT,
            }
        )

    return app


app = create_app()
