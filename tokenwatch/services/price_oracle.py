import enum
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tokenwatch.clients import HeliusClient, PriceClient
from tokenwatch.config import Settings
from tokenwatch.utils import MemoryCache

logger = logging.getLogger(__name__)


class PriceUnavailableError(Exception):
    """Raised when the pool-derived token price cannot be computed."""


class PriceMode(enum.Enum):
    LIVE_SPOT = "live_spot"
    HISTORICAL_BY_DATE = "historical_by_date"
    HISTORICAL_BY_MINUTE = "historical_by_minute"

    @classmethod
    def parse(cls, raw: str) -> "PriceMode":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown price mode '{raw}'") from None


def format_price_date(timestamp: int) -> str:
    """Local calendar date of ``timestamp`` as ``DD-MM-YYYY``."""
    return datetime.fromtimestamp(int(timestamp)).strftime("%d-%m-%Y")


class PriceOracle:
    """
    Resolves the SOL price for a transfer and derives the token price from pool reserves.

    Every lookup degrades to a configured constant instead of failing, so a
    missing price never blocks persisting the transfer.
    """

    def __init__(self, settings: Settings, prices: PriceClient, helius: HeliusClient):
        self.settings = settings
        self.prices = prices
        self.helius = helius
        self._date_cache = MemoryCache()

    async def native_price(self, mode: PriceMode, timestamp: Optional[int] = None) -> Decimal:
        if mode is PriceMode.LIVE_SPOT:
            price = await self.prices.get_sol_spot_price()
            if price is None:
                return self._sol_fallback("spot")
            logger.info("SOL spot price fetched: %s", price)
            return price

        if timestamp is None:
            raise ValueError(f"{mode.name} requires a timestamp")

        if mode is PriceMode.HISTORICAL_BY_DATE:
            return await self._price_on_date(format_price_date(timestamp))

        price = await self.prices.get_sol_price_at_minute(timestamp)
        if price is None:
            return self._sol_fallback(f"minute {timestamp}")
        logger.info("SOL price at %s: %s", timestamp, price)
        return price

    async def token_price(self, native_price: Decimal) -> Decimal:
        """``(wsol_reserve / token_reserve) * native_price``."""
        wsol = await self.helius.get_token_account_balance(self.settings.wsol_vault)
        token = await self.helius.get_token_account_balance(self.settings.token_vault)
        if wsol is None or token is None:
            raise PriceUnavailableError("vault reserves could not be read")
        if wsol == 0 or token == 0:
            raise PriceUnavailableError("vaults exist but hold no reserves")

        price = (wsol / token) * native_price
        logger.info(
            "%s pool price: $%s (pool %s %s | %s WSOL)",
            self.settings.token_symbol,
            price,
            token,
            self.settings.token_symbol,
            wsol,
        )
        return price

    async def token_price_or_fallback(self, native_price: Decimal) -> Decimal:
        quoted = await self.prices.get_token_price(self.settings.token_mint)
        if quoted:
            return quoted

        try:
            return await self.token_price(native_price)
        except PriceUnavailableError as exc:
            logger.warning(
                "%s price unavailable (%s); using fallback %s",
                self.settings.token_symbol,
                exc,
                self.settings.token_price_fallback,
            )
            return self.settings.token_price_fallback

    async def _price_on_date(self, date_string: str) -> Decimal:
        cached = self._date_cache.get(date_string)
        if cached is not None:
            logger.debug("Using cached SOL price for %s: %s", date_string, cached)
            return cached

        price = await self.prices.get_sol_price_on_date(date_string)
        if price is None:
            return self._sol_fallback(date_string)
        self._date_cache.set(date_string, price)
        logger.info("SOL price on %s: %s", date_string, price)
        return price

    def _sol_fallback(self, label: str) -> Decimal:
        logger.warning("SOL price (%s) unavailable; using fallback %s", label, self.settings.sol_price_fallback)
        return self.settings.sol_price_fallback
