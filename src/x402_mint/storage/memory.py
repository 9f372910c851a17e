"""In-memory ProcessedPaymentStore. Lives as long as the process."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from x402_mint.models.records import ProcessedPayment


class MemoryProcessedStore:
    """Dict-backed store; lost on restart."""

    def __init__(self) -> None:
        self._records: dict[str, ProcessedPayment] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, tx_hash: str) -> ProcessedPayment | None:
        return self._records.get(tx_hash)

    async def add(self, record: ProcessedPayment) -> bool:
        if record.tx_hash in self._records:
            return False
        if not record.processed_at:
            record = replace(record, processed_at=datetime.now(timezone.utc).isoformat())
        self._records[record.tx_hash] = record
        return True

    async def list_recent(self, limit: int = 50) -> list[ProcessedPayment]:
        return list(reversed(self._records.values()))[:limit]
