"""Current price and price history services for TF2 currencies.

Both fetchers are request-scoped: they are built with the API key and an
UpstreamClient, make exactly one upstream call and keep no state.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import ValidationError

from ..models.backpack import CurrenciesEnvelope, PriceHistoryEnvelope
from .errors import ClientInputError, ConfigurationError, UpstreamDecodeError, UpstreamLogicalFailure
from .upstream import CURRENCIES_PATH, PRICE_HISTORY_PATH, UpstreamClient

logger = logging.getLogger(__name__)

DEFAULT_TIMEFRAME = "30days"


class Timeframe(str, Enum):
    """Recency windows accepted by the history endpoint."""
    SEVEN_DAYS = "7days"
    THIRTY_DAYS = "30days"
    NINETY_DAYS = "90days"
    ONE_YEAR = "1year"
    THREE_YEARS = "3years"

    @property
    def window(self) -> timedelta:
        return _WINDOWS[self]


_WINDOWS = {
    Timeframe.SEVEN_DAYS: timedelta(days=7),
    Timeframe.THIRTY_DAYS: timedelta(days=30),
    Timeframe.NINETY_DAYS: timedelta(days=90),
    Timeframe.ONE_YEAR: timedelta(days=365),
    Timeframe.THREE_YEARS: timedelta(days=3 * 365),
}


@dataclass(frozen=True)
class PriceSnapshot:
    """Key and refined metal exchange rates at observed_at."""
    key_price_in_refined: float
    refined_price_in_fiat: float
    observed_at: datetime
    usd_price_in_refined: Optional[float] = None


@dataclass
class HistoryPoint:
    """A single historical price point."""
    timestamp: int  # unix seconds
    value: float


@dataclass
class HistoryQuery:
    """Parameters of a price history lookup."""
    item: str
    quality: str
    timeframe: str = DEFAULT_TIMEFRAME


@dataclass
class HistoryResult:
    """Filtered history for an item, in upstream order."""
    item: str
    points: List[HistoryPoint] = field(default_factory=list)


def compute_cutoff(timeframe: str, now: Optional[int] = None) -> int:
    """Return the oldest unix timestamp kept for ``timeframe``.

    Unknown timeframes (including the empty string) return 0, which keeps
    the whole series instead of rejecting the request.
    """
    try:
        window = Timeframe(timeframe).window
    except ValueError:
        return 0

    if now is None:
        now = int(time.time())
    return now - int(window.total_seconds())


def filter_history(points: Iterable[HistoryPoint], cutoff: int) -> List[HistoryPoint]:
    """Keep points at or after ``cutoff``, preserving order and duplicates."""
    return [p for p in points if p.timestamp >= cutoff]


class CurrentPriceFetcher:
    """Fetches the current key/refined exchange rates."""

    def __init__(self, api_key: str, client: UpstreamClient):
        """
        Args:
            api_key: backpack.tf API key
            client: Upstream client used for the request

        Raises:
            ConfigurationError: If api_key is empty
        """
        if not api_key:
            raise ConfigurationError("backpack.tf API key is not configured")
        self._api_key = api_key
        self._client = client

    async def fetch(self) -> PriceSnapshot:
        """Fetch current prices.

        Raises:
            UpstreamTransportError, UpstreamDecodeError, UpstreamLogicalFailure
        """
        try:
            payload = await self._client.get_json(CURRENCIES_PATH, {}, self._api_key)
        except UpstreamLogicalFailure as e:
            logger.error(f"Backpack.tf API error: {e.body}")
            raise

        try:
            envelope = CurrenciesEnvelope.model_validate(payload)
        except ValidationError as e:
            raise UpstreamDecodeError(f"Unexpected currencies response: {e}") from e

        currencies = envelope.response.currencies
        return PriceSnapshot(
            key_price_in_refined=currencies.keys.price.value,
            refined_price_in_fiat=currencies.refined.price.value,
            observed_at=datetime.now().astimezone(),
            usd_price_in_refined=currencies.usd.price.value if currencies.usd else None,
        )


class HistoryFetcher:
    """Fetches and filters the price history of an item."""

    def __init__(self, api_key: str, client: UpstreamClient):
        if not api_key:
            raise ConfigurationError("backpack.tf API key is not configured")
        self._api_key = api_key
        self._client = client

    async def fetch(self, query: HistoryQuery) -> HistoryResult:
        """Fetch history for ``query.item``/``query.quality`` within ``query.timeframe``.

        Raises:
            ClientInputError: If item or quality is empty (no upstream call is made)
            UpstreamTransportError, UpstreamDecodeError, UpstreamLogicalFailure
        """
        if not query.item or not query.quality:
            raise ClientInputError("Missing item or quality parameter")

        cutoff = compute_cutoff(query.timeframe)

        params = {"item": query.item, "quality": query.quality}
        try:
            payload = await self._client.get_json(PRICE_HISTORY_PATH, params, self._api_key)
        except UpstreamLogicalFailure as e:
            logger.error(
                f"Backpack.tf price history API error for item {query.item} "
                f"(quality {query.quality}): {e.message}"
            )
            raise

        try:
            envelope = PriceHistoryEnvelope.model_validate(payload)
        except ValidationError as e:
            raise UpstreamDecodeError(f"Unexpected price history response: {e}") from e

        points = [
            HistoryPoint(timestamp=h.timestamp, value=h.value)
            for h in envelope.response.history
        ]
        kept = filter_history(points, cutoff)
        logger.debug(
            f"History for {query.item}: kept {len(kept)}/{len(points)} points "
            f"(timeframe={query.timeframe!r}, cutoff={cutoff})"
        )
        return HistoryResult(item=query.item, points=kept)
