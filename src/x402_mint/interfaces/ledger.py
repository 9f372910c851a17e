"""LedgerClient protocol - reads receipts and submits mint calls."""

from __future__ import annotations

from typing import Protocol

from x402_mint.models.ledger import TransactionReceipt
from x402_mint.models.records import MintRequest, MintResult, PendingMint


class LedgerClient(Protocol):
    """Network access for one signing identity and one mint contract."""

    @property
    def signer_address(self) -> str:
        """Address of the signing identity used for mint calls."""
        ...

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Fetch a finalized receipt. Raises ReceiptNotFound if there is none yet."""
        ...

    async def submit_mint(self, request: MintRequest) -> PendingMint:
        """Broadcast exactly one mint call. Never call concurrently."""
        ...

    async def await_confirmation(self, pending: PendingMint, timeout: float) -> MintResult:
        """Wait for the mint receipt. Raises SubmissionFailed on revert or timeout."""
        ...

    async def get_contract_owner(self) -> str:
        """Registered owner of the mint contract."""
        ...
