import tempfile
import threading
import unittest
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from support import TOKEN, WALLET, make_settings

from tokenwatch.models import IndexedTransaction, TokenTransfer
from tokenwatch.services.price_oracle import PriceMode, PriceOracle
from tokenwatch.services.scanner import TransferScanner
from tokenwatch.storage import TransferStore


def make_tx(signature="S1", mint=TOKEN, from_account=WALLET, to_account="X", amount="1000", timestamp=1700000000):
    return IndexedTransaction(
        signature=signature,
        timestamp=timestamp,
        token_transfers=[
            TokenTransfer(
                mint=mint,
                from_user_account=from_account,
                to_user_account=to_account,
                token_amount=Decimal(amount),
            )
        ],
    )


class ScannerTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.settings = make_settings(transfers_db_path=str(Path(self._tmp.name) / "transfers.db"))
        self.store = TransferStore(self.settings.transfers_db_path)
        self.helius = SimpleNamespace(get_transfer_transactions=AsyncMock(return_value=[]))
        self.oracle = SimpleNamespace(
            native_price=AsyncMock(return_value=Decimal("160")),
            token_price_or_fallback=AsyncMock(return_value=Decimal("0.00004")),
        )
        self.balances = SimpleNamespace(balance_of=AsyncMock(return_value=Decimal("42000")))
        self.notifier = SimpleNamespace(notify=AsyncMock())

    def tearDown(self):
        self._tmp.cleanup()

    def make_scanner(self, **overrides) -> TransferScanner:
        deps = dict(
            helius=self.helius,
            store=self.store,
            oracle=self.oracle,
            balances=self.balances,
            notifier=self.notifier,
        )
        deps.update(overrides)
        return TransferScanner(self.settings, **deps)


class FirstRunScenarioTests(ScannerTestCase):
    async def test_sell_is_persisted_and_notified_once_then_skipped(self):
        self.helius.get_transfer_transactions.return_value = [make_tx()]
        scanner = self.make_scanner()

        first = await scanner.run()

        self.helius.get_transfer_transactions.assert_awaited_with(100)
        self.oracle.native_price.assert_awaited_once_with(PriceMode.HISTORICAL_BY_MINUTE, 1700000000)
        self.oracle.token_price_or_fallback.assert_awaited_once_with(Decimal("160"))
        self.balances.balance_of.assert_awaited_once_with(WALLET)

        stored = self.store.all()
        assert len(stored) == 1
        assert stored[0].signature == "S1"
        assert stored[0].amount == Decimal("1000")
        assert stored[0].from_address == WALLET
        assert stored[0].sol_price == Decimal("160")
        assert stored[0].token_price == Decimal("0.00004")
        assert stored[0].wallet_balance_at_time == Decimal("42000")

        self.notifier.notify.assert_awaited_once()
        notified = self.notifier.notify.await_args.args[0]
        assert notified == stored[0]
        assert notified.is_sell(WALLET)
        assert (first.persisted, first.notified, first.failed) == (1, 1, False)

        second = await scanner.run()

        self.helius.get_transfer_transactions.assert_awaited_with(5)
        self.notifier.notify.assert_awaited_once()
        assert second.skipped == 1
        assert second.persisted == 0
        assert self.store.count() == 1

    async def test_first_run_uses_minute_pricing_then_live_spot(self):
        scanner = self.make_scanner()
        self.helius.get_transfer_transactions.return_value = [make_tx("S1")]
        await scanner.run()
        self.helius.get_transfer_transactions.return_value = [make_tx("S2", timestamp=1700000100)]
        await scanner.run()

        modes = [c.args[0] for c in self.oracle.native_price.await_args_list]
        assert modes == [PriceMode.HISTORICAL_BY_MINUTE, PriceMode.LIVE_SPOT]
        assert scanner.is_first_run is False


class FilterTests(ScannerTestCase):
    async def test_other_mint_is_never_persisted(self):
        self.helius.get_transfer_transactions.return_value = [make_tx(mint="OTHER_MINT")]
        result = await self.make_scanner().run()

        assert self.store.count() == 0
        self.notifier.notify.assert_not_awaited()
        self.oracle.native_price.assert_not_awaited()
        assert result.matched == 0

    async def test_other_mint_consumes_no_pacing_delay(self):
        self.settings.entry_delay = 0.5
        self.helius.get_transfer_transactions.return_value = [make_tx(mint="OTHER_MINT")]
        with patch("tokenwatch.services.scanner.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await self.make_scanner().run()
        sleep.assert_not_awaited()

    async def test_transfer_between_other_wallets_is_never_persisted(self):
        self.helius.get_transfer_transactions.return_value = [make_tx(from_account="A", to_account="B")]
        await self.make_scanner().run()

        assert self.store.count() == 0
        self.notifier.notify.assert_not_awaited()

    async def test_incoming_transfer_is_persisted(self):
        self.helius.get_transfer_transactions.return_value = [make_tx(from_account="Seller", to_account=WALLET)]
        await self.make_scanner().run()

        assert self.store.exists("S1")
        assert not self.notifier.notify.await_args.args[0].is_sell(WALLET)


class FailureTests(ScannerTestCase):
    async def test_fetch_failure_keeps_first_run_state(self):
        self.helius.get_transfer_transactions.return_value = None
        scanner = self.make_scanner()

        result = await scanner.run()

        assert result.failed is True
        assert scanner.is_first_run is True
        assert scanner.page_size == 100
        assert scanner.last_result is result

    async def test_empty_page_returns_early(self):
        scanner = self.make_scanner()
        result = await scanner.run()

        assert result.fetched == 0
        assert result.failed is False
        assert scanner.is_first_run is True

    async def test_unexpected_error_never_escapes_run(self):
        self.helius.get_transfer_transactions.side_effect = RuntimeError("boom")
        with self.assertLogs("tokenwatch.services.scanner", level="ERROR"):
            result = await self.make_scanner().run()
        assert result.failed is True

    async def test_insert_race_suppresses_notification(self):
        self.helius.get_transfer_transactions.return_value = [make_tx()]
        store = SimpleNamespace(
            exists=lambda signature: False,
            insert=lambda transfer: SimpleNamespace(inserted=False),
        )
        result = await self.make_scanner(store=store).run()

        self.notifier.notify.assert_not_awaited()
        assert result.persisted == 0

    async def test_failing_entry_does_not_block_the_next_transaction(self):
        self.helius.get_transfer_transactions.return_value = [make_tx("S1"), make_tx("S2")]
        self.balances.balance_of.side_effect = [RuntimeError("rpc down"), Decimal("1")]
        with self.assertLogs("tokenwatch.services.scanner", level="ERROR"):
            await self.make_scanner().run()

        assert not self.store.exists("S1")
        assert self.store.exists("S2")
        self.notifier.notify.assert_awaited_once()

    async def test_price_outage_stores_fallback_constants_and_still_notifies(self):
        prices = SimpleNamespace(
            get_sol_spot_price=AsyncMock(return_value=None),
            get_sol_price_on_date=AsyncMock(return_value=None),
            get_sol_price_at_minute=AsyncMock(return_value=None),
            get_token_price=AsyncMock(return_value=None),
        )
        self.helius.get_token_account_balance = AsyncMock(return_value=None)
        oracle = PriceOracle(self.settings, prices, self.helius)
        self.helius.get_transfer_transactions.return_value = [make_tx()]

        await self.make_scanner(oracle=oracle).run()

        stored = self.store.all()[0]
        assert stored.sol_price == Decimal("150")
        assert stored.token_price == Decimal("0.000036")
        self.notifier.notify.assert_awaited_once()


class MultipleEntryTests(ScannerTestCase):
    def make_two_entry_tx(self):
        return IndexedTransaction(
            signature="S1",
            timestamp=1700000000,
            token_transfers=[
                TokenTransfer(mint=TOKEN, from_user_account=WALLET, to_user_account="X", token_amount=Decimal("1")),
                TokenTransfer(mint=TOKEN, from_user_account="Y", to_user_account=WALLET, token_amount=Decimal("2")),
            ],
        )

    async def test_only_first_entry_of_a_signature_is_stored_and_announced(self):
        self.helius.get_transfer_transactions.return_value = [self.make_two_entry_tx()]

        result = await self.make_scanner().run()

        assert (result.matched, result.persisted, result.notified) == (2, 1, 1)
        assert self.oracle.native_price.await_count == 2
        assert [t.amount for t in self.store.all()] == [Decimal("1")]
        self.notifier.notify.assert_awaited_once()
        assert self.notifier.notify.await_args.args[0].amount == Decimal("1")

    async def test_failure_in_first_entry_still_stores_the_second(self):
        self.helius.get_transfer_transactions.return_value = [self.make_two_entry_tx()]
        self.balances.balance_of.side_effect = [RuntimeError("rpc down"), Decimal("3")]

        with self.assertLogs("tokenwatch.services.scanner", level="ERROR"):
            result = await self.make_scanner().run()

        assert result.persisted == 1
        stored = self.store.all()
        assert [t.amount for t in stored] == [Decimal("2")]
        assert stored[0].to_address == WALLET
        self.notifier.notify.assert_awaited_once()


class StorageThreadTests(ScannerTestCase):
    async def test_store_calls_run_off_the_event_loop_thread(self):
        loop_thread = threading.get_ident()
        seen = []

        def exists(signature):
            seen.append(threading.get_ident())
            return False

        def insert(transfer):
            seen.append(threading.get_ident())
            return SimpleNamespace(inserted=True)

        self.helius.get_transfer_transactions.return_value = [make_tx()]
        await self.make_scanner(store=SimpleNamespace(exists=exists, insert=insert)).run()

        assert len(seen) == 2
        assert loop_thread not in seen
        self.notifier.notify.assert_awaited_once()


class PacingTests(ScannerTestCase):
    async def test_delays_follow_price_mode(self):
        self.settings.first_run_price_delay = 2
        self.settings.live_price_delay = 1
        self.settings.pool_price_delay = 0.3
        self.settings.entry_delay = 0.5
        scanner = self.make_scanner()

        with patch("tokenwatch.services.scanner.asyncio.sleep", new_callable=AsyncMock) as sleep:
            self.helius.get_transfer_transactions.return_value = [make_tx("S1")]
            await scanner.run()
            first_cycle = [c.args[0] for c in sleep.await_args_list]
            sleep.reset_mock()
            self.helius.get_transfer_transactions.return_value = [make_tx("S2")]
            await scanner.run()
            second_cycle = [c.args[0] for c in sleep.await_args_list]

        assert first_cycle == [2, 0.3, 0.5]
        assert second_cycle == [1, 0.3, 0.5]
