"""
FastAPI application entry point.

``create_app`` builds one application with its own Database and
ApprovalNotifier on ``app.state``; nothing is shared through module globals.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
from typing import Callable, Optional
from pathlib import Path
import logging

from zameenhub.config import Settings, get_settings
from zameenhub.database import Database
from zameenhub.routers import (
    auth_router,
    properties_router,
    favorites_router,
    profiles_router,
    admin_router,
    notifications_router,
)
from zameenhub.services.error_handler import ErrorHandlerService
from zameenhub.services.notifications import ApprovalNotifier
from zameenhub.utils.exceptions import APIException

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    handlers = (
        (APIException, ErrorHandlerService.handle_api_exception),
        (RequestValidationError, ErrorHandlerService.handle_validation_error),
        (PydanticValidationError, ErrorHandlerService.handle_validation_error),
        (SQLAlchemyError, ErrorHandlerService.handle_database_error),
        (StarletteHTTPException, ErrorHandlerService.handle_http_exception),
        (Exception, ErrorHandlerService.handle_unexpected_error),
    )
    for exc_class, render in handlers:
        app.add_exception_handler(exc_class, _adapt(render))


def _adapt(render: Callable[[Exception, Request], JSONResponse]):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return render(exc, request)
    return handler


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use instead of the environment
        database: Pre-built Database, e.g. one pointing at a test database

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    database = database or Database(settings)
    notifier = ApprovalNotifier(queue_size=settings.notification_queue_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        if not await database.check_connection():
            logger.error("Failed to connect to database on startup")

        yield

        logger.info("Shutting down application")
        notifier.close()
        await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Real-estate listing marketplace. Seekers browse approved listings, "
            "dealers publish listings after admin approval, and admins moderate "
            "properties and dealer applications.\n\n"
            "Obtain a token from `/api/v1/auth/login` and send it as `Bearer <token>`."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "Authentication", "description": "Signup, login and tokens"},
            {"name": "Properties", "description": "Listing browsing and management"},
            {"name": "Favorites", "description": "Saved properties and local favorites merge"},
            {"name": "Profiles", "description": "Own profile and account deletion"},
            {"name": "Admin", "description": "Moderation of properties and dealers"},
            {"name": "Notifications", "description": "Approval decision stream"},
            {"name": "Health", "description": "Service health"},
        ],
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    for router in (
        auth_router,
        properties_router,
        favorites_router,
        profiles_router,
        admin_router,
        notifications_router,
    ):
        app.include_router(router, prefix=settings.api_v1_prefix)

    _register_exception_handlers(app)

    # An absolute media URL means files are served by something else (CDN, proxy)
    if settings.media_url_prefix.startswith("/"):
        Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
        app.mount(settings.media_url_prefix, StaticFiles(directory=settings.upload_dir), name="media")

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.environment,
            "documentation": {"swagger_ui": "/docs", "redoc": "/redoc"},
            "api_prefix": settings.api_v1_prefix,
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Liveness plus database connectivity, for load balancers.
        """
        if not await database.check_connection():
            raise HTTPException(status_code=503, detail="Database connection failed")

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "database": "connected",
            "approval_subscribers": notifier.subscriber_count(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "zameenhub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
