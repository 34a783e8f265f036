"""Re-send an alert for every stored transfer, oldest first."""

import asyncio
import logging

from telegram import Bot

from tokenwatch.config import Settings
from tokenwatch.main import configure_logging
from tokenwatch.services import NotificationDispatcher
from tokenwatch.storage import TransferStore

logger = logging.getLogger(__name__)


async def resend_all(settings: Settings, store: TransferStore, bot: Bot) -> int:
    dispatcher = NotificationDispatcher(settings, bot)
    transfers = store.all()
    for transfer in transfers:
        logger.info("Resending notification for %s", transfer.signature)
        await dispatcher.notify(transfer)
        if settings.resend_delay > 0:
            await asyncio.sleep(settings.resend_delay)
    return len(transfers)


async def _run() -> None:
    settings = Settings.from_env()
    store = TransferStore(settings.transfers_db_path)
    async with Bot(settings.telegram_token) as bot:
        sent = await resend_all(settings, store, bot)
    logger.info("All %s stored notifications re-sent.", sent)


def main() -> None:
    configure_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
