"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .adapters.registry import build_default_registry
from .analyzer import AnthropicEngine, BatchAnalyzer, ReasoningEngine
from .collaborators import (
    CommunicationStore,
    InMemoryIntegrationRegistry,
    InMemoryStore,
    IntegrationRegistry,
    load_integrations,
)
from .collector import FanOutCollector
from .config import Settings
from .errors import FailureKind, ScanFailed, UnauthorizedError
from .pipeline import ScanPipeline

logger = structlog.get_logger()


def build_pipeline(
    settings: Settings,
    *,
    integrations: IntegrationRegistry,
    store: CommunicationStore,
    engine: ReasoningEngine | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ScanPipeline:
    """Wire the default adapters, collector and analyzer into a pipeline."""
    collector = FanOutCollector(build_default_registry(settings, transport=transport), settings.scan)
    analyzer = BatchAnalyzer(
        engine or AnthropicEngine(settings.analyzer),
        timeout_seconds=settings.analyzer.timeout_seconds,
    )
    return ScanPipeline(
        integrations=integrations,
        collector=collector,
        analyzer=analyzer,
        store=store,
        config=settings.scan,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: report providers without OAuth credentials."""
    settings: Settings = app.state.settings
    for provider in settings.missing_provider_credentials():
        logger.warning("provider_credentials_missing", provider=provider)
    logger.info("scan_service_started")
    yield
    logger.info("shutdown_complete")


async def _unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    logger.info("request_unauthorized", path=request.url.path, reason=str(exc))
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


async def _scan_failed_handler(request: Request, exc: ScanFailed) -> JSONResponse:
    content: dict = {"error": exc.message, "kind": exc.kind.value}
    if exc.kind is FailureKind.ANALYSIS:
        content["communications_count"] = exc.communications_count
    return JSONResponse(status_code=exc.kind.status_code, content=content)


def create_app(
    settings: Settings | None = None,
    *,
    pipeline: ScanPipeline | None = None,
    store: CommunicationStore | None = None,
    registry: IntegrationRegistry | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    if registry is None:
        if settings.integrations_file:
            registry = load_integrations(settings.integrations_file)
        else:
            registry = InMemoryIntegrationRegistry()
    if store is None:
        store = InMemoryStore()
    if pipeline is None:
        pipeline = build_pipeline(settings, integrations=registry, store=store)

    app = FastAPI(
        title="Rapport Scan Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.store = store

    app.add_exception_handler(UnauthorizedError, _unauthorized_handler)
    app.add_exception_handler(ScanFailed, _scan_failed_handler)

    from .routers.clients import router as clients_router
    from .routers.insights import router as insights_router
    from .routers.scan import router as scan_router

    app.include_router(scan_router)
    app.include_router(insights_router)
    app.include_router(clients_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "rapport-scan"}

    return app
