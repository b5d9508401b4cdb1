"""Application factory."""

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from favourites_api.config import Settings, get_settings
from favourites_api.core.logging_utils import configure_logging, request_logger
from favourites_api.core.rate_limit import build_rate_limiter
from favourites_api.core.security import AuthenticationGate
from favourites_api.core.sql_store import SQLFavouritesStore
from favourites_api.core.store import FavouritesStore
from favourites_api.database import create_db_engine
from favourites_api.routers import favourites, health

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(settings: Settings | None = None, store: FavouritesStore | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings, read from the environment when not given
        store: Favourites store to serve from. When not given, a SQL store is built
            from ``settings.database_url``; the app then owns it, creating the schema
            on startup and disposing the engine on shutdown.

    Returns:
        FastAPI: Configured application

    Example:
        ```python
        from favourites_api.app import create_app
        from favourites_api.core.store import MemoryFavouritesStore

        app = create_app(store=MemoryFavouritesStore())
        ```
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    owns_store = store is None
    if owns_store:
        store = SQLFavouritesStore.from_engine(create_db_engine(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_store:
            store.create_schema()
        logger.info(f"{settings.app_name} started (auth mode: {app.state.auth_gate.mode.value})")
        yield
        if owns_store:
            store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Manage a user's favourite charts, insights and audiences",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.auth_gate = AuthenticationGate.from_settings(settings)
    app.state.rate_limiter = build_rate_limiter(settings)

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "-")
        request_logger(logger, request_id).exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal server error"},
        )

    # Include routers
    app.include_router(health.router)
    app.include_router(favourites.router)

    return app
