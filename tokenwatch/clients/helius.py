import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from tokenwatch.config import Settings
from tokenwatch.models import IndexedTransaction

logger = logging.getLogger(__name__)

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class HeliusClient:
    """Async client for the Helius enhanced-transactions API and Solana JSON-RPC reads."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def get_transfer_transactions(self, limit: int) -> Optional[List[IndexedTransaction]]:
        """
        Fetch the most recent TRANSFER transactions of the watched wallet.

        Returns ``None`` when the call fails so callers can tell an outage
        apart from an empty page.
        """
        url = self.settings.transactions_endpoint
        params: Dict[str, Any] = {
            "api-key": self.settings.helius_api_key,
            "limit": int(limit),
            "type": "TRANSFER",
        }
        try:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("HTTP error calling %s: %s", url, exc)
            return None

        if not isinstance(payload, list):
            logger.warning("Unexpected transactions payload from %s: %r", url, payload)
            return None

        transactions: List[IndexedTransaction] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            parsed = IndexedTransaction.from_payload(item)
            if parsed is not None:
                transactions.append(parsed)
        return transactions

    async def get_token_account_balance(self, account: str) -> Optional[Decimal]:
        """Raw balance of an SPL token account scaled by its mint decimals."""
        result = await self._rpc("getTokenAccountBalance", [account])
        if result is None:
            return None
        try:
            value = result["value"]
            raw = Decimal(str(value["amount"]))
            decimals = int(value.get("decimals") or 0)
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            logger.warning("Malformed token account balance for %s: %s", account, exc)
            return None
        return raw.scaleb(-decimals)

    async def get_token_accounts_by_owner(self, owner: str) -> Optional[List[Dict[str, Any]]]:
        result = await self._rpc(
            "getTokenAccountsByOwner",
            [owner, {"programId": SPL_TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        if result is None:
            return None
        accounts = result.get("value") if isinstance(result, dict) else None
        if not isinstance(accounts, list):
            logger.warning("Malformed token accounts payload for %s", owner)
            return None
        return accounts

    async def _rpc(self, method: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        body = {"jsonrpc": "2.0", "id": "1", "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
                response = await client.post(self.settings.rpc_url, json=body)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("RPC %s failed: %s", method, exc)
            return None

        if not isinstance(payload, dict):
            logger.warning("RPC %s returned unexpected payload: %r", method, payload)
            return None
        if payload.get("error"):
            logger.warning("RPC %s returned error: %s", method, payload["error"])
            return None
        result = payload.get("result")
        if not isinstance(result, dict):
            logger.warning("RPC %s returned no result", method)
            return None
        return result
