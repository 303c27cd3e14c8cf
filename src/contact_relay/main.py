"""
Main FastAPI application entry point.

This module sets up the FastAPI app with middleware, routes, exception
handlers and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import contact_router, health_router, metrics_router
from .config import Settings, load_settings_or_exit
from .core.credentials import CredentialMinter
from .core.exceptions import ContactRelayException
from .core.forwarder import WebhookForwarder
from .core.metrics import MetricsCollector
from .core.rate_limiter import FixedWindowRateLimiter


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Opens and closes the webhook HTTP session.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting contact relay", version=app.version)

        forwarder = app.state.forwarder
        await forwarder.start()

        try:
            logger.info("Contact relay listening", port=settings.port)
            yield
        finally:
            logger.info("Shutting down contact relay")
            await forwarder.stop()
            logger.info("Contact relay shutdown complete")

    return lifespan


async def contact_relay_exception_handler(request: Request, exc: ContactRelayException) -> JSONResponse:
    """Render pipeline failures as {ok: false, error: message}."""
    logger = structlog.get_logger(__name__)
    if exc.status_code >= 500:
        log = logger.error
    elif exc.status_code == 429:
        log = logger.warning
    else:
        log = logger.info
    log(
        "Request failed",
        error=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message},
        headers=exc.headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "Server error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Builds the process-wide components (rate limiter, credential minter,
    webhook forwarder, metrics) once and stores them on app.state.
    """
    if settings is None:
        settings = load_settings_or_exit()

    configure_logging(settings.log_level)

    app = FastAPI(
        title="Contact Relay",
        description="Contact form → n8n webhook relay",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings),
    )

    app.state.settings = settings
    app.state.metrics = MetricsCollector()
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.rate_limit.max_requests,
        window_seconds=settings.rate_limit.window_seconds,
    )
    app.state.credential_minter = CredentialMinter(settings.jwt_secret)
    app.state.forwarder = WebhookForwarder(
        url=settings.n8n_webhook_url,
        timeout_seconds=settings.webhook.timeout_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    app.add_exception_handler(ContactRelayException, contact_relay_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(contact_router, tags=["contact"])
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = load_settings_or_exit()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
