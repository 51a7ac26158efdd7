"""Response shapes of the backpack.tf endpoints we consume.

The currency and price-history envelopes overlap only in
``response.success``; they are kept as separate models so a decode
failure points at the endpoint that produced it. JSON ``null`` in a
numeric or list field reads as zero/empty, the way the web client has
always seen it.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CurrencyPrice(BaseModel):
    """Price block of a single currency entry."""
    value: float
    value_raw: Optional[float] = None
    currency: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def null_value_is_zero(cls, value):
        return 0.0 if value is None else value


class CurrencyEntry(BaseModel):
    price: CurrencyPrice


class Currencies(BaseModel):
    """Currency map from IGetCurrencies; only the entries we read."""
    model_config = ConfigDict(populate_by_name=True)

    keys: CurrencyEntry
    refined: CurrencyEntry
    usd: Optional[CurrencyEntry] = Field(default=None, alias="USD")


class CurrenciesBody(BaseModel):
    success: int
    message: Optional[str] = None
    currencies: Currencies


class CurrenciesEnvelope(BaseModel):
    """Top-level IGetCurrencies/v1 response."""
    response: CurrenciesBody


class HistoryEntry(BaseModel):
    """One point of IGetPriceHistory output."""
    value: float
    timestamp: int

    @field_validator("value", mode="before")
    @classmethod
    def null_value_is_zero(cls, value):
        return 0.0 if value is None else value


class PriceHistoryBody(BaseModel):
    success: int
    message: Optional[str] = None
    history: List[HistoryEntry] = Field(default_factory=list)

    @field_validator("history", mode="before")
    @classmethod
    def null_history_is_empty(cls, value):
        return [] if value is None else value


class PriceHistoryEnvelope(BaseModel):
    """Top-level IGetPriceHistory/v1 response."""
    response: PriceHistoryBody
