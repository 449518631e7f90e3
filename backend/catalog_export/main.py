"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_export.api.v1 import exports
from catalog_export.clients import CatalogClient
from catalog_export.core.config import settings
from catalog_export.core.logging import get_logger, setup_logging
from catalog_export.factory import build_orchestrator
from catalog_export.pipeline.registry import JobRegistry
from catalog_export.rendering import PdfArtifactRenderer


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging(settings.effective_log_level)
    logger = get_logger("startup")
    client = CatalogClient.from_settings()
    renderer = PdfArtifactRenderer.from_settings()
    app.state.registry = JobRegistry(
        lambda kind: build_orchestrator(kind, client=client, renderer=renderer)
    )
    logger.info("Application starting", env=settings.APP_ENV, catalog=settings.CATALOG_API_BASE_URL)
    yield
    await renderer.aclose()
    await client.aclose()
    logger.info("Application shutting down", jobs=len(app.state.registry))


app = FastAPI(
    title="Catalog Export API",
    description="Batch export of product PDFs and logistics workbooks",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"
app.include_router(exports.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
