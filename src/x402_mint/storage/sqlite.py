"""SQLite implementation of the ProcessedPaymentStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from x402_mint.models.records import ProcessedPayment

SCHEMA = """
-- Payments that produced a confirmed mint; written once, never updated
CREATE TABLE IF NOT EXISTS processed_payments (
    tx_hash TEXT PRIMARY KEY,
    recipient TEXT NOT NULL,
    mint_tx_hash TEXT NOT NULL,
    amount_paid TEXT,
    processed_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_processed_at ON processed_payments(processed_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteProcessedStore:
    """SQLite-backed store; survives restarts.

    ``add`` is a conditional insert, so the first commit for a hash wins
    and later commits are no-ops.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    async def get(self, tx_hash: str) -> ProcessedPayment | None:
        async with self.db.execute(
            "SELECT * FROM processed_payments WHERE tx_hash=?", (tx_hash,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_processed(row) if row else None

    async def add(self, record: ProcessedPayment) -> bool:
        # amount_paid is stored as text: token amounts can exceed SQLite's int64
        cur = await self.db.execute(
            "INSERT OR IGNORE INTO processed_payments"
            " (tx_hash, recipient, mint_tx_hash, amount_paid, processed_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (
                record.tx_hash,
                record.recipient,
                record.mint_tx_hash,
                str(record.amount_paid) if record.amount_paid is not None else None,
                record.processed_at or _now(),
            ),
        )
        await self.db.commit()
        return cur.rowcount == 1

    async def list_recent(self, limit: int = 50) -> list[ProcessedPayment]:
        async with self.db.execute(
            "SELECT * FROM processed_payments ORDER BY processed_at DESC LIMIT ?", (limit,)
        ) as cur:
            return [_row_to_processed(row) async for row in cur]


def _row_to_processed(row: aiosqlite.Row) -> ProcessedPayment:
    amount = row["amount_paid"]
    return ProcessedPayment(
        tx_hash=row["tx_hash"],
        recipient=row["recipient"],
        mint_tx_hash=row["mint_tx_hash"],
        amount_paid=int(amount) if amount is not None else None,
        processed_at=row["processed_at"],
    )
