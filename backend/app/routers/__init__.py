# API Routers

from . import health, prices, items

__all__ = ["health", "prices", "items"]
