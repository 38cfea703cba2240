import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from apps.api.errors import register_error_handlers
from apps.api.middlewares.metrics import MetricsMiddleware
from apps.api.routers import favorites, health, locations, notifications, people, suggestions
from core import close_redis
from core.config import settings
from services.interests import get_expander

logging.basicConfig(level=logging.DEBUG if settings.is_development else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup: load the interest taxonomy once
    get_expander()
    yield
    # Shutdown
    await close_redis()


app = FastAPI(
    title="GeoStud Discovery API",
    description="Matching, notifications and location suggestions for campus social discovery",
    version="0.1.0",
    lifespan=lifespan,
)

# Middlewares
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers (each carries its own prefix)
app.include_router(health.router)
app.include_router(people.router)
app.include_router(notifications.router)
app.include_router(suggestions.router)
app.include_router(favorites.router)
app.include_router(locations.router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"status": "ok", "service": "geostud-discovery"}


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
