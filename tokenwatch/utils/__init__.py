"""Utility helpers for caching, formatting and banner images."""

from .cache import MemoryCache
from .formatters import format_date_utc, format_price, format_token_amount, format_usd

__all__ = [
    "MemoryCache",
    "format_date_utc",
    "format_price",
    "format_token_amount",
    "format_usd",
]
