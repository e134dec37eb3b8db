"""Chatgate - FastAPI application

Thin HTTP layer over the provider orchestrator: chat routing, provider
status and configuration, and translation of orchestration errors into
HTTP responses.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from chatgate.api import router as api_router
from chatgate.config import get_settings
from chatgate.middleware import request_logging_middleware
from chatgate.providers import (
    AllProvidersFailedError,
    ChatgateError,
    EmptyResponseError,
    NoProviderAvailableError,
    ProviderNotFoundError,
    ProviderOrchestrator,
    ProviderUnavailableError,
    UnknownProviderError,
    UpstreamError,
    get_orchestrator,
)
from chatgate.utils.logging import setup_logging

logger = structlog.get_logger()

ERROR_STATUS = (
    (NoProviderAvailableError, 503),
    (AllProvidersFailedError, 503),
    (ProviderUnavailableError, 400),
    (ProviderNotFoundError, 404),
    (UnknownProviderError, 422),
    (UpstreamError, 502),
    (EmptyResponseError, 502),
)


def error_payload(exc: ChatgateError) -> dict:
    """Client-facing description of an orchestration or provider error"""
    payload = {"error": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, AllProvidersFailedError):
        payload["error"] = "All AI providers are currently unavailable"
        payload["failures"] = [failure.to_dict() for failure in exc.failures]
        payload["skipped"] = exc.skipped
    elif isinstance(exc, NoProviderAvailableError):
        payload["error"] = "No AI provider is enabled"
    elif isinstance(exc, ProviderUnavailableError):
        payload["error"] = f"Provider {exc.provider} is not configured"
        payload["provider"] = exc.provider
    elif isinstance(exc, UpstreamError):
        payload["provider"] = exc.provider
        payload["status_code"] = exc.status_code
    elif isinstance(exc, UnknownProviderError):
        payload["names"] = exc.names
    elif hasattr(exc, "provider"):
        payload["provider"] = exc.provider
    return payload


async def chatgate_error_handler(request: Request, exc: ChatgateError) -> JSONResponse:
    status_code = next((code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)), 500)
    logger.warning("Request failed with chatgate error",
                   path=request.url.path,
                   status_code=status_code,
                   error=str(exc),
                   error_type=type(exc).__name__)
    return JSONResponse(status_code=status_code, content=error_payload(exc))


def create_app(orchestrator: Optional[ProviderOrchestrator] = None) -> FastAPI:
    """Build the FastAPI application, optionally around a given orchestrator"""
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging()
        if getattr(app.state, "orchestrator", None) is None:
            app.state.orchestrator = get_orchestrator()
        logger.info("Chatgate started",
                    version=settings.app_version,
                    providers=[p.model_dump() for p in app.state.orchestrator.get_provider_status()])
        yield
        logger.info("Chatgate shut down")

    app = FastAPI(
        title=settings.app_name,
        description="Multi-provider AI chat routing with ordered fallback",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    app.add_exception_handler(ChatgateError, chatgate_error_handler)
    app.middleware("http")(request_logging_middleware)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness plus a count of providers with credentials"""
        current = app.state.orchestrator or get_orchestrator()
        statuses = current.get_provider_status()
        return {
            "status": "healthy",
            "version": settings.app_version,
            "providers_available": sum(1 for s in statuses if s.available),
            "providers_registered": len(statuses),
        }

    return app


app = create_app()
