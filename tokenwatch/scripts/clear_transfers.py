"""Delete every stored transfer so the next scan re-processes (and re-announces) them."""

import logging
import os

from tokenwatch.main import configure_logging
from tokenwatch.storage import TransferStore

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()
    # Only the database path is needed here.
    store = TransferStore(os.getenv("TRANSFERS_DB_PATH", "transfers.db"))
    deleted = store.clear()
    logger.info("Deleted %s rows from the transfers table at %s.", deleted, store.db_path)


if __name__ == "__main__":
    main()
