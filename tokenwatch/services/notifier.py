import html
import logging
from pathlib import Path

from telegram import Bot
from telegram.error import TelegramError

from tokenwatch.config import Settings
from tokenwatch.models import Transfer
from tokenwatch.utils import format_date_utc, format_price, format_token_amount, format_usd
from tokenwatch.utils.images import load_banner

logger = logging.getLogger(__name__)
MAX_CAPTION_LENGTH = 1024


class NotificationDispatcher:
    """Formats stored transfers as HTML alerts and posts them to the configured Telegram chat."""

    def __init__(self, settings: Settings, bot: Bot):
        self.settings = settings
        self.bot = bot

    async def notify(self, transfer: Transfer) -> None:
        text = self.render_message(transfer)
        try:
            await self._send(text)
        except TelegramError:
            logger.exception("Telegram error sending alert for %s", transfer.signature)
            return
        logger.info("Telegram notification sent for %s", transfer.signature)

    def render_message(self, transfer: Transfer) -> str:
        symbol = html.escape(self.settings.token_symbol)
        name = html.escape(self.settings.token_name)
        side = "Sell" if transfer.is_sell(self.settings.client_wallet) else "Buy"
        lines = [
            f"<b>🚨🚨🚨 {side} DETECTED! 🚨🚨🚨</b>",
            "",
            f"<b>❤️ Token: {name} ({symbol})</b>",
            f"<b>🚀 Amount:</b> <code>{format_token_amount(transfer.amount)} {symbol}</code>",
            f"<b>💰 USD Value:</b> <code>{format_usd(transfer.usd_value)}</code>",
            f"<b>🔒 From:</b> {self._account_link(transfer.from_address)}",
            f"<b>🔒 To:</b> {self._account_link(transfer.to_address)}",
            f"<b>💥 SOL Price: 1 SOL / </b><code>{format_price(transfer.sol_price)}</code>",
            f"<b>❤️ {name} Price: 1 {symbol} / </b><code>{format_price(transfer.token_price)}</code>",
            f"<b>💹 Client Wallet Balance:</b> <code>{format_token_amount(transfer.wallet_balance_at_time)} {symbol}</code>",
            f"<b>📅 Date:</b> <code>{format_date_utc(transfer.timestamp)}</code>",
            "",
            f'<a href="{self.settings.tx_url(transfer.signature)}">🔍 <b>View Transaction</b></a>',
        ]
        return "\n".join(lines)

    def _account_link(self, address: str) -> str:
        return f'<a href="{self.settings.account_url(address)}">{html.escape(address or "unknown")}</a>'

    async def _send(self, text: str) -> None:
        chat_id = self.settings.telegram_chat_id
        banner = self.settings.banner_image_path
        if banner:
            try:
                photo = load_banner(Path(banner), self.settings.banner_image_scale)
                if len(text) <= MAX_CAPTION_LENGTH:
                    await self.bot.send_photo(chat_id=chat_id, photo=photo, caption=text, parse_mode="HTML")
                    return
                await self.bot.send_photo(chat_id=chat_id, photo=photo)
            except (TelegramError, OSError):
                logger.exception("Unable to send banner image %s, falling back to text.", banner)
        await self.bot.send_message(chat_id=chat_id, text=text, parse_mode="HTML")
