"""Idempotency tracker - at most one mint per payment hash."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from x402_mint.interfaces.store import ProcessedPaymentStore
from x402_mint.models.records import MintResult, ProcessedPayment

log = logging.getLogger(__name__)


class IdempotencyTracker:
    """Membership of processed payments plus a per-hash exclusive reservation.

    ``mark_processed`` must only be called once a mint is confirmed, so a
    failed attempt leaves the hash eligible for retry. A confirmed mint the
    store could not persist is still held in memory for the life of the
    process, so it is never minted twice here.
    """

    def __init__(self, store: ProcessedPaymentStore) -> None:
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}
        self._unsaved: dict[str, ProcessedPayment] = {}

    async def is_processed(self, tx_hash: str) -> bool:
        return await self.get(tx_hash) is not None

    async def get(self, tx_hash: str) -> ProcessedPayment | None:
        if tx_hash in self._unsaved:
            return self._unsaved[tx_hash]
        return await self._store.get(tx_hash)

    async def mark_processed(
        self, tx_hash: str, result: MintResult, amount_paid: int | None = None,
    ) -> None:
        """Commit a confirmed mint. Committing the same hash twice is a no-op.

        Never raises: the mint has already landed, so a store failure is
        logged and the record kept in memory instead.
        """
        record = ProcessedPayment(
            tx_hash=tx_hash,
            recipient=result.recipient,
            mint_tx_hash=result.mint_tx_hash,
            amount_paid=amount_paid,
            processed_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            inserted = await self._store.add(record)
        except Exception as exc:
            log.error(
                "Could not persist payment %s (mint %s, recipient %s): %s; kept in memory only",
                tx_hash, result.mint_tx_hash, result.recipient, exc, exc_info=True,
            )
            self._unsaved[tx_hash] = record
            return
        if not inserted:
            log.debug("Payment %s already marked processed", tx_hash[:18])

    @asynccontextmanager
    async def reserve(self, tx_hash: str) -> AsyncIterator[None]:
        """Hold the exclusive slot for ``tx_hash`` until the block exits.

        Tasks arriving for the same hash wait in arrival order and must
        re-check ``is_processed`` once they get in.
        """
        lock = self._locks.get(tx_hash)
        if lock is None:
            lock = self._locks[tx_hash] = asyncio.Lock()
        self._holders[tx_hash] = self._holders.get(tx_hash, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[tx_hash] -= 1
            if self._holders[tx_hash] == 0:
                del self._holders[tx_hash]
                del self._locks[tx_hash]

    def in_flight(self) -> int:
        """Number of hashes currently reserved or waited on."""
        return len(self._locks)
