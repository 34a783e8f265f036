import html
import logging
import sqlite3

from telegram import Update
from telegram.ext import ContextTypes

from tokenwatch.config import Settings
from tokenwatch.services import TransferScanner
from tokenwatch.storage import TransferStore
from tokenwatch.utils import format_date_utc

logger = logging.getLogger(__name__)


class CommandHandlers:
    """Operator commands wired into python-telegram-bot."""

    def __init__(self, settings: Settings, scanner: TransferScanner, store: TransferStore):
        self.settings = settings
        self.scanner = scanner
        self.store = store

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message:
            return
        symbol = html.escape(self.settings.token_symbol)
        text = (
            f"👋 <b>{html.escape(self.settings.token_name)} transfer watcher</b>\n\n"
            f"Watching <code>{html.escape(self.settings.client_wallet)}</code> for {symbol} transfers "
            f"every {self.settings.scan_interval_seconds}s.\n\n"
            "<b>Available commands</b>\n"
            "/start — This overview\n"
            "/status — Last scan summary"
        )
        await update.message.reply_text(text, parse_mode="HTML")

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message:
            return
        try:
            stored = str(self.store.count())
        except sqlite3.Error:
            logger.exception("Failed to count stored transfers.")
            stored = "N/A"

        result = self.scanner.last_result
        last_run = self.scanner.last_run_at
        lines = [
            "📊 <b>Scanner Status</b>",
            "",
            f"• Last scan: {format_date_utc(int(last_run)) if last_run else 'not yet run'}",
        ]
        if result is not None:
            lines.extend(
                [
                    f"• Outcome: {'failed' if result.failed else 'ok'}",
                    f"• Fetched: {result.fetched} | Skipped: {result.skipped}",
                    f"• Persisted: {result.persisted} | Notified: {result.notified}",
                ]
            )
        lines.extend(
            [
                f"• Stored transfers: {stored}",
                f"• Next page size: {self.scanner.page_size}",
                f"• Next price mode: {self.scanner.price_mode.value}",
            ]
        )
        await update.message.reply_text("\n".join(lines), parse_mode="HTML")
