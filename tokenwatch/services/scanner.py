import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from tokenwatch.clients import HeliusClient
from tokenwatch.config import Settings
from tokenwatch.models import IndexedTransaction, TokenTransfer, Transfer
from tokenwatch.services.balance_probe import BalanceProbe
from tokenwatch.services.notifier import NotificationDispatcher
from tokenwatch.services.price_oracle import PriceMode, PriceOracle
from tokenwatch.storage import TransferStore

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    fetched: int = 0
    skipped: int = 0
    matched: int = 0
    persisted: int = 0
    notified: int = 0
    failed: bool = False


class TransferScanner:
    """
    Drives one scan cycle: fetch -> filter -> dedup -> enrich -> persist -> notify.

    The first cycle after start-up fetches a larger page and prices transfers at
    their own minute; later cycles fetch a small page and use the live price.
    Cycles must not overlap; the job queue runs one at a time.
    """

    def __init__(
        self,
        settings: Settings,
        helius: HeliusClient,
        store: TransferStore,
        oracle: PriceOracle,
        balances: BalanceProbe,
        notifier: NotificationDispatcher,
    ):
        self.settings = settings
        self.helius = helius
        self.store = store
        self.oracle = oracle
        self.balances = balances
        self.notifier = notifier

        self.first_run_mode = PriceMode.parse(settings.first_run_price_mode)
        self.steady_mode = PriceMode.parse(settings.steady_price_mode)
        self.is_first_run = True
        self.page_size = settings.initial_page_size
        self.last_result: Optional[ScanResult] = None
        self.last_run_at: Optional[float] = None

    @property
    def price_mode(self) -> PriceMode:
        return self.first_run_mode if self.is_first_run else self.steady_mode

    async def job_callback(self, context) -> None:
        await self.run()

    async def run(self) -> ScanResult:
        result = ScanResult()
        logger.info(
            "Scanning %s for %s transfers (limit=%s)",
            self.settings.client_wallet,
            self.settings.token_symbol,
            self.page_size,
        )
        try:
            await self._scan(result)
        except Exception:
            logger.exception("Transfer scan failed")
            result.failed = True
        self.last_result = result
        self.last_run_at = time.time()
        return result

    async def _scan(self, result: ScanResult) -> None:
        transactions = await self.helius.get_transfer_transactions(self.page_size)
        if transactions is None:
            logger.warning("Transaction fetch failed; retrying next cycle.")
            result.failed = True
            return
        if not transactions:
            logger.info("No transfer transactions found.")
            return

        result.fetched = len(transactions)
        logger.info("Found %s transactions.", result.fetched)
        for tx in transactions:
            if await asyncio.to_thread(self.store.exists, tx.signature):
                logger.debug("Skipping already saved tx: %s", tx.signature)
                result.skipped += 1
                continue
            await self._process_transaction(tx, result)

        self.page_size = self.settings.steady_page_size
        self.is_first_run = False
        logger.info(
            "Transfer scan complete: %s persisted, %s notified, %s skipped.",
            result.persisted,
            result.notified,
            result.skipped,
        )

    async def _process_transaction(self, tx: IndexedTransaction, result: ScanResult) -> None:
        for entry in tx.token_transfers:
            if entry.mint != self.settings.token_mint:
                continue
            try:
                await self._process_entry(tx, entry, result)
            except Exception:
                logger.exception("Failed to process %s transfer in %s", self.settings.token_symbol, tx.signature)
            await self._pause(self.settings.entry_delay)

    async def _process_entry(self, tx: IndexedTransaction, entry: TokenTransfer, result: ScanResult) -> None:
        wallet = self.settings.client_wallet
        if wallet not in (entry.from_user_account, entry.to_user_account):
            return
        result.matched += 1

        mode = self.price_mode
        sol_price = await self.oracle.native_price(mode, tx.timestamp)
        if mode is PriceMode.LIVE_SPOT:
            await self._pause(self.settings.live_price_delay)
        else:
            await self._pause(self.settings.first_run_price_delay)

        token_price = await self.oracle.token_price_or_fallback(sol_price)
        await self._pause(self.settings.pool_price_delay)

        # Sampled now, not at the transfer's block time.
        balance = await self.balances.balance_of(wallet)

        transfer = Transfer(
            signature=tx.signature,
            from_address=entry.from_user_account or "",
            to_address=entry.to_user_account or "",
            amount=entry.token_amount,
            timestamp=tx.timestamp,
            wallet_balance_at_time=balance,
            sol_price=sol_price,
            token_price=token_price,
        )
        stored = await asyncio.to_thread(self.store.insert, transfer)
        if not stored.inserted:
            logger.info("Transfer %s already stored; not notifying.", tx.signature)
            return

        result.persisted += 1
        logger.info("Saved new transfer %s: %s %s", tx.signature, entry.token_amount, self.settings.token_symbol)
        await self.notifier.notify(transfer)
        result.notified += 1

    @staticmethod
    async def _pause(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
