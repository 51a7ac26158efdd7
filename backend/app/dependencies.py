"""FastAPI dependency providers."""

import logging

from fastapi import Depends, HTTPException, Request, status

from .services.config import Settings, config_service
from .services.errors import ConfigurationError
from .services.prices import CurrentPriceFetcher, HistoryFetcher
from .services.upstream import UpstreamClient

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings resolved at startup, built on first use if lifespan did not run."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        config_service.load_and_validate()
        settings = config_service.build_settings()
        request.app.state.settings = settings
    return settings


def get_upstream_client(settings: Settings = Depends(get_settings)) -> UpstreamClient:
    return UpstreamClient(
        base_url=settings.upstream_base_url,
        app_id=settings.app_id,
    )


def _configuration_error(e: ConfigurationError) -> HTTPException:
    logger.error(f"Error: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Server configuration error",
    )


def get_current_price_fetcher(
    settings: Settings = Depends(get_settings),
    client: UpstreamClient = Depends(get_upstream_client),
) -> CurrentPriceFetcher:
    try:
        return CurrentPriceFetcher(settings.require_api_key(), client)
    except ConfigurationError as e:
        raise _configuration_error(e)


def get_history_fetcher(
    settings: Settings = Depends(get_settings),
    client: UpstreamClient = Depends(get_upstream_client),
) -> HistoryFetcher:
    try:
        return HistoryFetcher(settings.require_api_key(), client)
    except ConfigurationError as e:
        raise _configuration_error(e)
