"""TF2 Price Tracker FastAPI Application.

Thin proxy over the backpack.tf web API: current key/refined prices and
item price history for the web client.

Run with:
    python -m app.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import health, prices, items
from .services.config import ConfigService, Settings, config_service, ConfigValidationException, API_KEY_ENV_VAR
from .services.logging_service import configure_logging

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Load config.yaml and the environment, exiting on an invalid config file."""
    try:
        config_service.load_and_validate()
    except ConfigValidationException as e:
        print(f"FATAL: {e}")
        print("Server cannot start with invalid configuration.")
        sys.exit(1)
    return config_service.build_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = load_settings()
    app.state.settings = settings

    configure_logging(settings.log_level, settings.log_format)
    if not settings.has_api_key:
        # Not fatal: each price request answers with a configuration error
        logger.warning(f"{API_KEY_ENV_VAR} not set, price endpoints will fail")
    logger.info(f"Using upstream {settings.upstream_base_url}")

    yield

    logger.info("Shutdown complete")


def cors_origins() -> list:
    """Allowed browser origins; an invalid config file is reported by lifespan."""
    service = ConfigService(config_service.config_path)
    try:
        service.load_and_validate()
    except ConfigValidationException:
        return list(Settings().allowed_origins)
    origins = service.get("cors", "allowed_origins")
    return list(origins) if origins is not None else list(Settings().allowed_origins)


app = FastAPI(
    title="TF2 Price Tracker API",
    description="Current and historical TF2 currency prices from backpack.tf",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(prices.router, prefix="/api/prices", tags=["Prices"])
app.include_router(items.router, prefix="/api/items", tags=["Items"])


@app.get("/")
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "TF2 Price Tracker API", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    uvicorn.run(
        "app.main:app",
        host=_settings.host,
        port=_settings.port,
        log_level=_settings.log_level.lower(),
    )
