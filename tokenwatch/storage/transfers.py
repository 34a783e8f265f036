"""
Durable record of processed transfers, keyed by transaction signature.

Each call opens its own sqlite connection; the primary key on ``signature``
is what keeps concurrent writers from storing the same transfer twice.
"""

import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import List, Union

from tokenwatch.models import Transfer

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS transfers (
    signature TEXT PRIMARY KEY,
    fromAddress TEXT,
    toAddress TEXT,
    amount TEXT,
    timestamp INTEGER,
    walletBalanceAtTime TEXT,
    solPrice TEXT,
    tokenPrice TEXT
)
"""


@dataclass(frozen=True)
class InsertResult:
    inserted: bool


class TransferStore:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        try:
            if self.db_path.parent and not self.db_path.parent.exists():
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn, conn:
                conn.execute(SCHEMA)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to initialise transfers table at %s", self.db_path)

    def exists(self, signature: str) -> bool:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute("SELECT 1 FROM transfers WHERE signature = ?", (signature,)).fetchone()
        except sqlite3.Error:
            logger.exception("DB error checking signature %s", signature)
            return False
        return row is not None

    def insert(self, transfer: Transfer) -> InsertResult:
        """Store ``transfer`` unless its signature is already present."""
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO transfers (signature, fromAddress, toAddress, amount, timestamp, "
                    "walletBalanceAtTime, solPrice, tokenPrice) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        transfer.signature,
                        transfer.from_address,
                        transfer.to_address,
                        str(transfer.amount),
                        int(transfer.timestamp),
                        str(transfer.wallet_balance_at_time),
                        str(transfer.sol_price),
                        str(transfer.token_price),
                    ),
                )
                inserted = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("DB error saving transfer %s", transfer.signature)
            return InsertResult(inserted=False)
        return InsertResult(inserted=inserted)

    def all(self) -> List[Transfer]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT * FROM transfers ORDER BY timestamp ASC, signature ASC").fetchall()
        return [self._row_to_transfer(row) for row in rows]

    def count(self) -> int:
        with closing(self._connect()) as conn:
            (total,) = conn.execute("SELECT COUNT(*) FROM transfers").fetchone()
        return int(total)

    def clear(self) -> int:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM transfers")
            return cursor.rowcount

    @staticmethod
    def _row_to_transfer(row: sqlite3.Row) -> Transfer:
        return Transfer(
            signature=row["signature"],
            from_address=row["fromAddress"],
            to_address=row["toAddress"],
            amount=Decimal(str(row["amount"])),
            timestamp=int(row["timestamp"]),
            wallet_balance_at_time=Decimal(str(row["walletBalanceAtTime"])),
            sol_price=Decimal(str(row["solPrice"])),
            token_price=Decimal(str(row["tokenPrice"])),
        )
