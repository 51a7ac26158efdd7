# Upstream response models

from .backpack import (
    CurrencyPrice,
    CurrencyEntry,
    Currencies,
    CurrenciesEnvelope,
    HistoryEntry,
    PriceHistoryEnvelope,
)

__all__ = [
    "CurrencyPrice",
    "CurrencyEntry",
    "Currencies",
    "CurrenciesEnvelope",
    "HistoryEntry",
    "PriceHistoryEnvelope",
]
