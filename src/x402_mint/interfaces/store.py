"""ProcessedPaymentStore protocol - membership of already-minted payments."""

from __future__ import annotations

from typing import Protocol

from x402_mint.models.records import ProcessedPayment


class ProcessedPaymentStore(Protocol):
    """Records which payment hashes already produced a confirmed mint."""

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def get(self, tx_hash: str) -> ProcessedPayment | None:
        ...

    async def add(self, record: ProcessedPayment) -> bool:
        """Insert if absent. Returns False when the hash was already recorded."""
        ...

    async def list_recent(self, limit: int = 50) -> list[ProcessedPayment]:
        ...
