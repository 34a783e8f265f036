import logging
from decimal import Decimal, InvalidOperation

from tokenwatch.clients import HeliusClient
from tokenwatch.config import Settings

logger = logging.getLogger(__name__)


class BalanceProbe:
    """Reads a wallet's current holding of the watched token. Never raises."""

    def __init__(self, settings: Settings, helius: HeliusClient):
        self.settings = settings
        self.helius = helius

    async def balance_of(self, wallet: str) -> Decimal:
        accounts = await self.helius.get_token_accounts_by_owner(wallet)
        if not accounts:
            return Decimal(0)

        for account in accounts:
            try:
                info = account["account"]["data"]["parsed"]["info"]
                if info.get("mint") != self.settings.token_mint:
                    continue
                token_amount = info["tokenAmount"]
                raw = token_amount.get("uiAmountString")
                if raw is None:
                    raw = token_amount.get("uiAmount")
                return Decimal(str(raw)) if raw is not None else Decimal(0)
            except (KeyError, TypeError, AttributeError, InvalidOperation) as exc:
                logger.warning("Skipping malformed token account for %s: %s", wallet, exc)
                continue
        return Decimal(0)
