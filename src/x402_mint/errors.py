"""Error taxonomy for payment verification and mint orchestration.

Three families, so callers can tell "your payment didn't qualify" from
"try again later" from "the deployment is broken":

- PaymentRejected: caused by the claim; resubmitting it unchanged won't help.
- TransientError: infrastructure; the same claim may be retried later.
- Misconfigured: operator action required; must not be retried.
"""

from __future__ import annotations

from typing import Any


class MintError(Exception):
    """Base class for all errors raised by the mint core."""

    retryable: bool = False

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the error body returned to callers."""
        body: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }
        if self.details:
            body["details"] = self.details
        return body


# ── Client-caused ──────────────────────────────────────────


class PaymentRejected(MintError):
    """The claim does not describe a qualifying payment."""


class InvalidClaim(PaymentRejected):
    """The transaction hash is missing or malformed."""

    def __init__(self, message: str = "Invalid or missing txHash", details: dict[str, Any] | None = None):
        super().__init__("invalid_claim", message, details)


class NoQualifyingPayment(PaymentRejected):
    """No transfer of the payment token to the treasury in the transaction."""

    def __init__(
        self,
        message: str = "No payment token transfer to the treasury found in tx",
        details: dict[str, Any] | None = None,
        code: str = "no_qualifying_payment",
    ):
        super().__init__(code, message, details)


class TransactionFailed(NoQualifyingPayment):
    """The payment transaction itself reverted; its events are not inspected."""

    def __init__(self, tx_hash: str):
        super().__init__(
            "Transaction failed",
            {"txHash": tx_hash},
            code="transaction_failed",
        )


class InsufficientAmount(PaymentRejected):
    """Qualifying transfers sum to less than the price."""

    def __init__(self, paid: int, required: int):
        self.paid = paid
        self.required = required
        super().__init__(
            "insufficient_amount",
            f"Insufficient amount: paid={paid} required={required}",
            {"paid": str(paid), "required": str(required)},
        )


# ── Transient ──────────────────────────────────────────────


class TransientError(MintError):
    """Infrastructure failure; the same claim can be retried."""

    retryable = True


class ReceiptNotFound(TransientError):
    """The ledger has no receipt for this hash yet (unknown or still pending)."""

    def __init__(self, tx_hash: str):
        super().__init__(
            "receipt_not_found",
            "Transaction not found",
            {"txHash": tx_hash},
        )


class LedgerUnavailable(TransientError):
    """A read against the ledger failed or timed out."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            "ledger_unavailable",
            f"Ledger call {operation} failed: {reason}",
            {"operation": operation},
        )


class SubmissionFailed(TransientError):
    """The mint was rejected, reverted or never confirmed.

    ``kind`` is one of ``rejected``, ``reverted``, ``timeout``.
    """

    def __init__(self, kind: str, reason: str, mint_tx_hash: str | None = None):
        self.kind = kind
        self.mint_tx_hash = mint_tx_hash
        details: dict[str, Any] = {"kind": kind}
        if mint_tx_hash:
            details["nftTxHash"] = mint_tx_hash
        super().__init__(f"submission_failed:{kind}", f"Mint {kind}: {reason}", details)


# ── Fatal ──────────────────────────────────────────────────


class Misconfigured(MintError):
    """The signing identity cannot mint; the deployment needs fixing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("misconfigured", message, details)
