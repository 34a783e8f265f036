"""HTTP clients for the indexing, RPC and price services."""

from .helius import HeliusClient
from .prices import PriceClient

__all__ = ["HeliusClient", "PriceClient"]
