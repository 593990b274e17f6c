"""FastAPI application entry point and lifespan management.

Configures CORS, registers API routers, and manages the application
lifespan: logging setup, construction of the generation services on
``app.state``, and graceful shutdown of the queue and the shared HTTP
clients.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from creative_studio.api.v1.router import router as v1_router
from creative_studio.config import get_settings
from creative_studio.schemas.common import HealthResponse
from creative_studio.schemas.provider import MultimediaGenerationConfig
from creative_studio.services.ai_provider_service import AIProviderService, build_default_adapters
from creative_studio.services.exceptions import ValidationError
from creative_studio.services.http_client_manager import close_all_clients
from creative_studio.services.multimedia_generation_service import MultimediaGenerationService


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Suppress noisy third-party HTTP loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_generation_service(settings) -> MultimediaGenerationService:
    config = MultimediaGenerationConfig.from_settings(settings)
    image_adapters, video_adapters = build_default_adapters(settings)
    provider_service = AIProviderService(config, image_adapters, video_adapters)
    return MultimediaGenerationService(config, provider_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging and the generation service; tear both down on exit."""
    settings = get_settings()
    _setup_logging(settings.LOG_LEVEL)

    # Tests may install their own service before startup
    if getattr(app.state, "generation_service", None) is None:
        app.state.generation_service = build_generation_service(settings)
    logging.getLogger(__name__).info("%s %s ready", settings.APP_NAME, settings.APP_VERSION)

    yield  # Application runs here

    await app.state.generation_service.shutdown()
    await close_all_clients()
    logging.getLogger(__name__).info("Shutting down")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def generation_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"error": "Invalid request", "detail": str(exc)})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logging.getLogger(__name__).exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)},
        )

    # Health check
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(
            status="healthy",
            version=settings.APP_VERSION,
            timestamp=datetime.now(timezone.utc),
        )

    # Mount API routes
    app.include_router(v1_router)

    return app


app = create_app()
