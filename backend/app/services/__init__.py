# Business Logic Services

from .errors import (
    PriceServiceError,
    ConfigurationError,
    ClientInputError,
    UpstreamError,
    UpstreamTransportError,
    UpstreamDecodeError,
    UpstreamLogicalFailure,
)
from .config import (
    ConfigService,
    config_service,
    ConfigValidationException,
    ConfigValidationError,
    Settings,
)
from .logging_service import configure_logging
from .upstream import (
    UpstreamClient,
    CURRENCIES_PATH,
    PRICE_HISTORY_PATH,
)
from .prices import (
    CurrentPriceFetcher,
    HistoryFetcher,
    HistoryPoint,
    HistoryQuery,
    HistoryResult,
    PriceSnapshot,
    Timeframe,
    compute_cutoff,
    filter_history,
)

__all__ = [
    # Errors
    "PriceServiceError",
    "ConfigurationError",
    "ClientInputError",
    "UpstreamError",
    "UpstreamTransportError",
    "UpstreamDecodeError",
    "UpstreamLogicalFailure",
    # Config
    "ConfigService",
    "config_service",
    "ConfigValidationException",
    "ConfigValidationError",
    "Settings",
    # Logging
    "configure_logging",
    # Upstream
    "UpstreamClient",
    "CURRENCIES_PATH",
    "PRICE_HISTORY_PATH",
    # Prices
    "CurrentPriceFetcher",
    "HistoryFetcher",
    "HistoryPoint",
    "HistoryQuery",
    "HistoryResult",
    "PriceSnapshot",
    "Timeframe",
    "compute_cutoff",
    "filter_history",
]
