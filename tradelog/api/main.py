"""
Tradelog REST API
=================

FastAPI application exposing the trading journal analysis engine.

Usage:
    # Development
    uvicorn tradelog.api.main:app --reload --port 8000

    # Production
    uvicorn tradelog.api.main:app --host 0.0.0.0 --port 8000 --workers 4

Environment Variables:
    OPENAI_API_KEY / TRADELOG_OPENAI_API_KEY: Enables model-generated advice
    TRADELOG_LOG_LEVEL: Root log level (default: INFO)
    TRADELOG_LOG_JSON: Emit JSON logs (default: false)
    TRADELOG_TIMEZONE: IANA timezone for hour/weekday bucketing
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from tradelog import __version__
from tradelog.config.logging import (
    business_logger,
    clear_request_context,
    configure_logging,
    set_request_context,
)
from tradelog.config.settings import (
    AdvisorSettings,
    AppSettings,
    get_advisor_settings,
    get_app_settings,
)
from tradelog.core.errors import TradelogError
from tradelog.journal.analyzer import JournalAnalyzer

from .routers import gamification, journal, system
from .routers.base import get_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    app_settings: Optional[AppSettings] = None,
    advisor_settings: Optional[AdvisorSettings] = None,
    analyzer: Optional[JournalAnalyzer] = None,
) -> FastAPI:
    """
    Application factory for creating the FastAPI instance.

    Args:
        app_settings: Application shell settings (read from env when omitted)
        advisor_settings: Advice generator settings (read from env when omitted)
        analyzer: Pre-built analyzer, mainly for tests

    Returns:
        Configured FastAPI application instance
    """
    app_settings = app_settings or get_app_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(
            level=app_settings.LOG_LEVEL,
            json_format=app_settings.LOG_JSON,
            service_name=app_settings.SERVICE_NAME,
            environment=app_settings.ENVIRONMENT,
        )
        logger.info("Tradelog API starting up...")

        owned_analyzer = None
        if getattr(app.state, "analyzer", None) is None:
            owned_analyzer = JournalAnalyzer(
                advisor_settings or get_advisor_settings(),
                tz=app_settings.tzinfo,
            )
            app.state.analyzer = owned_analyzer

        logger.info("Tradelog API ready")
        yield

        logger.info("Tradelog API shutting down...")
        # Injected analyzers belong to the caller
        if owned_analyzer is not None:
            await owned_analyzer.aclose()
        logger.info("Tradelog API shutdown complete")

    app = FastAPI(
        title="Tradelog API",
        description="Trading journal analysis: metrics, patterns, advice and gamification",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "System", "description": "Health checks"},
            {"name": "Journal", "description": "Trade metrics, patterns and advice"},
            {"name": "Gamification", "description": "Levels, daily goals and achievements"},
        ],
    )
    app.state.settings = app_settings
    app.state.tz = app_settings.tzinfo
    app.state.analyzer = analyzer

    app.include_router(system.router)
    app.include_router(journal.router)
    app.include_router(gamification.router)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        """Attach a request id and log each request with its duration."""
        request_id = set_request_context(request.headers.get("X-Request-ID"))
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        business_logger.log_api_request(
            endpoint=request.url.path,
            method=request.method,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return response

    @app.exception_handler(TradelogError)
    async def tradelog_exception_handler(request: Request, exc: TradelogError):
        """Map domain errors to their HTTP status."""
        exc.log()
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "success": False,
                "data": exc.to_dict(include_debug=app_settings.ENVIRONMENT == "development"),
                "error": exc.user_message,
                "timestamp": get_timestamp(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "data": None,
                "error": exc.detail,
                "timestamp": get_timestamp(),
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "data": None,
                "error": "Internal server error",
                "timestamp": get_timestamp(),
            },
        )

    return app


app = create_app()
