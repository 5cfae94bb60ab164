"""FastAPI application entry point.

Garden backend: plot state machine over HTTP, planting through the
command queue, maturity notifications by email.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ferm import __version__
from ferm.config import Settings, settings as default_settings
from ferm.core.errors import FermError
from ferm.infra.logging import get_logger, setup_logging
from ferm.schemas.common import ErrorResponse
from ferm.services.runtime import GardenRuntime

# Import routers
from ferm.api.routes.garden import router as garden_router
from ferm.api.routes.health import router as health_router
from ferm.api.routes.inventory import router as inventory_router
from ferm.api.routes.notifications import router as notifications_router

logger = get_logger(__name__)


def create_app(
    app_settings: Settings | None = None,
    runtime: GardenRuntime | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        app_settings: Overrides the environment-derived settings
        runtime: Pre-built services; the lifespan builds one when omitted
    """
    cfg = app_settings or default_settings
    setup_logging(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler.

        Startup:
        - Verify database connection (fail fast after retries)
        - Connect the message broker
        - Start the planting and notification consumers
        - Start the maturity scanner

        Shutdown:
        - Stop workers, then close broker and database
        """
        logger.info(
            "Garden backend starting",
            environment=cfg.environment,
            broker_enabled=cfg.broker_enabled,
            email_enabled=cfg.email_enabled,
        )

        if getattr(app.state, "runtime", None) is None:
            app.state.runtime = GardenRuntime(cfg)
        await app.state.runtime.open()

        yield

        logger.info("Garden backend shutting down")
        await app.state.runtime.close()
        logger.info("Cleanup complete")

    app = FastAPI(
        title="Ferm Garden",
        description="Garden plots, planting queue and maturity notifications",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if cfg.environment == "dev" else None,
        redoc_url=None,
    )
    app.state.runtime = runtime

    # CORS middleware (mainly for local development)
    if cfg.environment == "dev":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log incoming requests with caller context."""
        response = await call_next(request)
        logger.debug(
            "Request handled",
            method=request.method,
            path=request.url.path,
            user_id=request.headers.get("X-User-Id"),
            status_code=response.status_code,
        )
        return response

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(FermError)
    async def ferm_error_handler(request: Request, exc: FermError) -> JSONResponse:
        """Map domain and infrastructure errors to their HTTP status."""
        log = logger.warning if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            error=exc.message,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            path=request.url.path,
        )
        body = ErrorResponse(error=exc.message, error_type=type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        body = ErrorResponse(error="Internal server error", error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content=body.model_dump())

    # =========================================================================
    # Include Routers
    # =========================================================================

    app.include_router(health_router, tags=["Health"])
    app.include_router(garden_router, prefix="/garden", tags=["Garden"])
    app.include_router(inventory_router, prefix="/inventory", tags=["Inventory"])
    app.include_router(notifications_router, tags=["Notifications"])

    @app.get("/")
    async def root() -> dict:
        """Root endpoint - basic service info."""
        return {
            "service": "Ferm Garden",
            "version": __version__,
            "environment": cfg.environment,
        }

    return app


app = create_app()
