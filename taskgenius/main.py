"""
TaskGenius - main application module.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .core.config import Settings, get_settings
from .core.database import check_db_connection, create_db_engine, create_session_factory, init_db
from .core.exceptions import TaskGeniusError
from .routers import auth, genius, tasks, users
from .services.genius import GeniusService
from .utils.security import CredentialService

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # httpx request logs include the Gemini URL and its API key
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _error_body(request: Request, error_type: str, status_code: int, message: str) -> dict:
    return {
        "error": {
            "type": error_type,
            "status_code": status_code,
            "message": message,
            "path": str(request.url.path),
            "timestamp": time.time(),
        }
    }


def create_app(
    settings: Optional[Settings] = None,
    genius_service: Optional[GeniusService] = None,
) -> FastAPI:
    """Build the application around one immutable settings value."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = create_db_engine(settings.database_url, echo=settings.debug)
    genius_service = genius_service or GeniusService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create tables on startup, release clients on shutdown"""
        logger.info("Starting TaskGenius...")
        if init_db(engine):
            logger.info("Database initialized successfully")
        else:
            logger.error("Database initialization failed")
        yield
        logger.info("Shutting down TaskGenius...")
        await genius_service.aclose()
        engine.dispose()

    app = FastAPI(
        title="TaskGenius",
        description="Task management with AI-assisted advice",
        version=settings.service_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.credentials = CredentialService(settings)
    app.state.genius = genius_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        """Log all requests with timing"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        if request.url.path != "/health":
            logger.info(f"{request.method} {request.url.path} - {response.status_code} ({process_time:.3f}s)")
        return response

    @app.exception_handler(TaskGeniusError)
    async def domain_exception_handler(request: Request, exc: TaskGeniusError):
        """Map domain errors to HTTP responses"""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc} {exc.context}")
        else:
            logger.info(f"{exc.error_code} on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.error_code, exc.status_code, exc.message),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions"""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, "http_error", exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies and parameters"""
        message = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            status_code=422,
            content=_error_body(request, "validation_error", 422, message),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                "internal_error",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal server error" if not settings.debug else str(exc),
            ),
        )

    app.include_router(auth.router, prefix=settings.api_prefix + "/auth", tags=["auth"])
    app.include_router(users.router, prefix=settings.api_prefix + "/users", tags=["users"])
    app.include_router(tasks.router, prefix=settings.api_prefix + "/tasks", tags=["tasks"])
    app.include_router(genius.router, prefix=settings.api_prefix + "/genius", tags=["genius"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": settings.service_name,
            "version": settings.service_version,
            "status": "running",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        db_healthy = check_db_connection(engine)
        return {
            "service": settings.service_name,
            "version": settings.service_version,
            "status": "healthy" if db_healthy else "unhealthy",
            "database": "connected" if db_healthy else "disconnected",
            "timestamp": time.time(),
        }

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taskgenius.main:create_app", factory=True, host="0.0.0.0", port=8000)
