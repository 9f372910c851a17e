"""Protocol interfaces for x402_mint components."""

from x402_mint.interfaces.ledger import LedgerClient
from x402_mint.interfaces.store import ProcessedPaymentStore

__all__ = ["LedgerClient", "ProcessedPaymentStore"]
