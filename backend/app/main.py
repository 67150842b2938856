"""Main FastAPI application"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
import logging
import traceback
import time
import uuid

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory, init_db
from app.core.exceptions import BaseAPIException, ErrorKind
from app.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, endpoint_label
from app.schemas.response import ErrorResponse, HealthResponse
from app.api.v1 import admin_users, auth, init
from app.services.rate_limiter import InMemoryRateLimiter
from app.services.token_service import TokenService

settings = get_settings()

# Configure logging - ensure log directory exists
_log_dir = Path(settings.get_log_file()).parent
_log_dir.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.get_log_file()),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


def _error_body(request: Request, kind: ErrorKind, code: str, message: str, details=None) -> dict:
    return ErrorResponse(
        error=message,
        kind=kind.value,
        code=code,
        details=details,
        path=request.url.path,
        timestamp=datetime.utcnow().isoformat(),
    ).model_dump()


async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions"""
    log = logger.error if exc.kind is ErrorKind.INTERNAL else logger.info
    log(
        f"API Exception: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "code": exc.code,
            "path": request.url.path,
            "method": request.method
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.kind, exc.code, exc.message, exc.details or None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation error: {errors}",
        extra={"path": request.url.path, "method": request.method}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, ErrorKind.VALIDATION, "validation", "Validation failed", errors)
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors"""
    logger.error(
        f"Database error: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, ErrorKind.INTERNAL, "internal", "A database error occurred. Please try again later."
        )
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.critical(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, ErrorKind.INTERNAL, "internal", "An unexpected error occurred.")
    )


def create_app(
    app_settings: Settings,
    session_factory: Optional[Callable[[], Session]] = None,
) -> FastAPI:
    """
    Build the application around an immutable settings value

    Signing keys, lockout policy and cookie policy are derived once here and
    kept on ``app.state``; request handlers only read them.
    """
    engine = None
    if session_factory is None:
        engine = build_engine(app_settings)
        session_factory = build_session_factory(engine)

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        debug=app_settings.DEBUG,
        docs_url="/api/docs" if app_settings.DEBUG else None,
        redoc_url="/api/redoc" if app_settings.DEBUG else None
    )

    app.state.settings = app_settings
    app.state.session_factory = session_factory
    app.state.token_service = TokenService(app_settings.token_config())
    app.state.lockout_policy = app_settings.lockout_policy()
    app.state.auth_rate_limiter = InMemoryRateLimiter(
        app_settings.AUTH_RATE_LIMIT_REQUESTS,
        app_settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    )

    # CORS middleware; cookies need credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers + request timing middleware
    @app.middleware("http")
    async def add_headers_and_timing(request: Request, call_next):
        """Add security headers and log slow requests"""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Request-ID"] = request_id

        endpoint = endpoint_label(request.scope)
        REQUEST_COUNT.labels(request.method, endpoint, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(request.method, endpoint).observe(duration)

        if duration > 1.0:
            logger.warning(
                "Slow request: %s %s took %.2fs request_id=%s",
                request.method,
                request.url.path,
                duration,
                request_id,
            )

        return response

    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.on_event("startup")
    async def startup_event():
        """Initialize application on startup"""
        app_settings.validate_security_settings()
        logger.info(f"Starting {app_settings.APP_NAME} v{app_settings.APP_VERSION}")
        logger.info(f"Environment: {app_settings.ENVIRONMENT}")

        if engine is not None:
            try:
                init_db(engine, app_settings)
                logger.info("Database initialized successfully")
            except Exception as e:
                logger.error(f"Failed to initialize database: {e}")
                raise

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        if engine is not None:
            engine.dispose()
        logger.info(f"Shutting down {app_settings.APP_NAME}")

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint"""
        db_ok = True
        db_error = None
        db = app.state.session_factory()
        try:
            db.execute(text("SELECT 1"))
        except Exception as exc:
            db_ok = False
            db_error = exc.__class__.__name__
        finally:
            db.close()

        return {
            "status": "healthy" if db_ok else "degraded",
            "version": app_settings.APP_VERSION,
            "timestamp": datetime.utcnow().isoformat(),
            "readiness": {
                "database": {"ok": db_ok, "error": db_error},
            },
        }

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "status": "running",
            "docs": "/api/docs" if app_settings.DEBUG else "disabled"
        }

    app.include_router(init.router, prefix="/api/v1/init", tags=["Bootstrap"])
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(admin_users.router, prefix="/api/v1/admin/users", tags=["Admin Users"])

    return app


app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
