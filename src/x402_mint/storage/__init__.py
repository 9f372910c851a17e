"""ProcessedPaymentStore implementations."""

from x402_mint.storage.memory import MemoryProcessedStore
from x402_mint.storage.sqlite import SQLiteProcessedStore

__all__ = ["MemoryProcessedStore", "SQLiteProcessedStore"]
