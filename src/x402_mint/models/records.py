"""Claim, mint and outcome records passed between the core components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MintState(str, Enum):
    """Lifecycle of a single payment claim."""

    RECEIVED = "received"
    VALIDATED = "validated"
    VERIFIED = "verified"
    RESERVED = "reserved"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentClaim:
    """A caller's claim that a payment happened in ``tx_hash``. Untrusted."""

    tx_hash: str


@dataclass(frozen=True)
class PaymentRecord:
    """Who paid and how much, derived fresh from one receipt."""

    payer: str
    amount_paid: int  # smallest token unit


@dataclass(frozen=True)
class MintRequest:
    """One mint for one qualifying payment."""

    payer: str
    quantity: int = 1


@dataclass(frozen=True)
class PendingMint:
    """Handle for a mint transaction that has been broadcast but not confirmed."""

    tx_hash: str
    recipient: str
    nonce: int | None = None


@dataclass(frozen=True)
class MintResult:
    """A confirmed mint."""

    recipient: str
    mint_tx_hash: str


@dataclass(frozen=True)
class ProcessedPayment:
    """A payment that has already produced a confirmed mint."""

    tx_hash: str
    recipient: str
    mint_tx_hash: str
    amount_paid: int | None = None
    processed_at: str = ""  # ISO 8601


@dataclass
class PaymentOutcome:
    """Successful result of processing a claim."""

    ok: bool
    tx_hash: str
    minted_to: str | None = None
    mint_tx_hash: str | None = None
    note: str = ""
    already_processed: bool = False
