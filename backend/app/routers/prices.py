"""Current price and price history router."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from ..dependencies import get_current_price_fetcher, get_history_fetcher
from ..services.errors import ClientInputError, UpstreamError, UpstreamLogicalFailure
from ..services.prices import (
    DEFAULT_TIMEFRAME,
    CurrentPriceFetcher,
    HistoryFetcher,
    HistoryQuery,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class PriceResponse(BaseModel):
    """Current key and refined metal prices."""
    keyPriceInRef: float
    refPriceInUSD: float
    lastUpdated: str


class PriceHistoryPointResponse(BaseModel):
    timestamp: int
    value: float


class PriceHistoryResponse(BaseModel):
    """Price history filtered to the requested timeframe."""
    item: str
    points: List[PriceHistoryPointResponse]


def _internal_error(detail: str = "Internal server error") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


@router.get("", response_model=PriceResponse)
async def get_prices(
    fetcher: CurrentPriceFetcher = Depends(get_current_price_fetcher),
):
    """Get the current price of keys in refined metal and refined in USD."""
    try:
        snapshot = await fetcher.fetch()
    except UpstreamLogicalFailure:
        # Upstream body was already logged by the fetcher; never sent to the client
        raise _internal_error("Error fetching prices")
    except UpstreamError as e:
        logger.error(f"Error fetching current prices: {e}")
        raise _internal_error()

    return PriceResponse(
        keyPriceInRef=snapshot.key_price_in_refined,
        refPriceInUSD=snapshot.refined_price_in_fiat,
        lastUpdated=snapshot.observed_at.isoformat(timespec="seconds"),
    )


@router.get("/history", response_model=PriceHistoryResponse)
async def get_price_history(
    item: str = Query("", description="Item name, e.g. 'Mann Co. Supply Crate Key'"),
    quality: str = Query("", description="Quality id, e.g. '6' for Unique"),
    timeframe: str = Query(
        DEFAULT_TIMEFRAME,
        description="7days, 30days, 90days, 1year or 3years; anything else returns the full history",
    ),
    fetcher: HistoryFetcher = Depends(get_history_fetcher),
):
    """Get historical prices for an item, filtered to a timeframe."""
    query = HistoryQuery(item=item, quality=quality, timeframe=timeframe or DEFAULT_TIMEFRAME)

    try:
        result = await fetcher.fetch(query)
    except ClientInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UpstreamLogicalFailure as e:
        raise _internal_error(f"Error fetching price history: {e.message}")
    except UpstreamError as e:
        logger.error(f"Error fetching price history for {item}: {e}")
        raise _internal_error()

    return PriceHistoryResponse(
        item=result.item,
        points=[
            PriceHistoryPointResponse(timestamp=p.timestamp, value=p.value)
            for p in result.points
        ],
    )
