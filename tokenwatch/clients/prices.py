import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx

from tokenwatch.config import Settings

logger = logging.getLogger(__name__)


class PriceClient:
    """Thin wrappers over the SOL and token price feeds. Every method returns ``None`` on failure."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def get_sol_spot_price(self) -> Optional[Decimal]:
        payload = await self._get_json(
            self.settings.sol_spot_price_url,
            params={"ids": "solana", "vs_currencies": "usd"},
        )
        return self._extract(payload, lambda data: data["solana"]["usd"], "SOL spot")

    async def get_sol_price_on_date(self, date_string: str) -> Optional[Decimal]:
        """``date_string`` is ``DD-MM-YYYY`` as CoinGecko expects."""
        payload = await self._get_json(self.settings.sol_history_url, params={"date": date_string})
        return self._extract(
            payload,
            lambda data: data["market_data"]["current_price"]["usd"],
            f"SOL history {date_string}",
        )

    async def get_sol_price_at_minute(self, timestamp: int) -> Optional[Decimal]:
        headers = {}
        if self.settings.cryptocompare_api_key:
            headers["Authorization"] = f"Apikey {self.settings.cryptocompare_api_key}"
        payload = await self._get_json(
            self.settings.sol_minute_url,
            params={"fsym": "SOL", "tsym": "USD", "limit": 1, "toTs": int(timestamp)},
            headers=headers,
        )
        # The last candle is the one closing at toTs.
        return self._extract(payload, lambda data: data["Data"]["Data"][-1]["close"], f"SOL minute {timestamp}")

    async def get_token_price(self, mint: str) -> Optional[Decimal]:
        if not self.settings.birdeye_api_key:
            return None
        payload = await self._get_json(
            self.settings.birdeye_price_url,
            params={"address": mint},
            headers={"X-API-KEY": self.settings.birdeye_api_key, "x-chain": "solana"},
        )
        return self._extract(payload, lambda data: data["data"]["value"], f"token {mint}")

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Any]:
        try:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("HTTP error calling %s: %s", url, exc)
            return None

    @staticmethod
    def _extract(payload: Optional[Any], getter, label: str) -> Optional[Decimal]:
        if payload is None:
            return None
        try:
            value = getter(payload)
            if value is None:
                raise ValueError("missing price")
            return Decimal(str(value))
        except (KeyError, IndexError, TypeError, ValueError, InvalidOperation) as exc:
            logger.warning("Malformed %s price payload: %s", label, exc)
            return None
