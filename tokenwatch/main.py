import logging

from telegram import Update

from tokenwatch.bot import build_application
from tokenwatch.config import Settings


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    # httpx logs request URLs, api-key query params included, at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    configure_logging()
    settings = Settings.from_env()
    application = build_application(settings)
    logging.info("Starting transfer watcher for %s...", settings.token_symbol)
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
