"""Business logic modules."""

from .balance_probe import BalanceProbe
from .notifier import NotificationDispatcher
from .price_oracle import PriceMode, PriceOracle, PriceUnavailableError
from .scanner import ScanResult, TransferScanner

__all__ = [
    "BalanceProbe",
    "NotificationDispatcher",
    "PriceMode",
    "PriceOracle",
    "PriceUnavailableError",
    "ScanResult",
    "TransferScanner",
]
