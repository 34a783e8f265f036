import logging

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from tokenwatch.clients import HeliusClient, PriceClient
from tokenwatch.config import Settings
from tokenwatch.handlers.commands import CommandHandlers
from tokenwatch.services import BalanceProbe, NotificationDispatcher, PriceOracle, TransferScanner
from tokenwatch.storage import TransferStore

logger = logging.getLogger(__name__)
COMMAND_MENU = [
    BotCommand("start", "Watcher overview"),
    BotCommand("status", "Last scan summary"),
]


def build_scanner(settings: Settings, application: Application) -> TransferScanner:
    helius = HeliusClient(settings)
    prices = PriceClient(settings)
    return TransferScanner(
        settings,
        helius=helius,
        store=TransferStore(settings.transfers_db_path),
        oracle=PriceOracle(settings, prices, helius),
        balances=BalanceProbe(settings, helius),
        notifier=NotificationDispatcher(settings, application.bot),
    )


def build_application(settings: Settings) -> Application:
    async def _post_init(application: Application) -> None:
        await application.bot.set_my_commands(COMMAND_MENU)

        if not settings.scan_enabled:
            logger.warning("SCAN_ENABLED is off; transfer scanner will not run.")
            return
        if application.job_queue:
            # The job queue never starts a run while the previous one is still going.
            application.job_queue.run_repeating(
                scanner.job_callback,
                interval=settings.scan_interval_seconds,
                first=5,
                name="transfer_scan",
            )
            logger.info(
                "Transfer scanner enabled (wallet=%s mint=%s interval=%ss).",
                settings.client_wallet,
                settings.token_mint,
                settings.scan_interval_seconds,
            )
        else:
            logger.warning("JobQueue not available; transfer scanner will not run.")

    application = (
        Application.builder()
        .token(settings.telegram_token)
        .post_init(_post_init)
        .build()
    )

    scanner = build_scanner(settings, application)
    command_handlers = CommandHandlers(settings, scanner, scanner.store)
    application.bot_data["scanner"] = scanner

    application.add_handler(CommandHandler("start", command_handlers.start))
    application.add_handler(CommandHandler("help", command_handlers.start))
    application.add_handler(CommandHandler("status", command_handlers.status))

    logger.info("Telegram application wired with command handlers.")
    return application
