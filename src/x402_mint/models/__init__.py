"""Data models for the x402_mint service."""

from x402_mint.models.ledger import (
    DecodedEvent,
    DecodeFailure,
    RawEvent,
    ReceiptStatus,
    TransactionReceipt,
    TransferEvent,
)
from x402_mint.models.records import (
    MintRequest,
    MintResult,
    MintState,
    PaymentClaim,
    PaymentOutcome,
    PaymentRecord,
    PendingMint,
    ProcessedPayment,
)
from x402_mint.models.config import ChainConfig, MinterConfig, ServerConfig, X402Config

__all__ = [
    "DecodedEvent", "DecodeFailure", "RawEvent", "ReceiptStatus",
    "TransactionReceipt", "TransferEvent",
    "MintRequest", "MintResult", "MintState", "PaymentClaim", "PaymentOutcome",
    "PaymentRecord", "PendingMint", "ProcessedPayment",
    "ChainConfig", "MinterConfig", "ServerConfig", "X402Config",
]
