"""Mint orchestration: idempotency, serialized submission, claim lifecycle."""

from x402_mint.minting.orchestrator import MintOrchestrator, normalize_tx_hash
from x402_mint.minting.queue import MintSubmissionQueue
from x402_mint.minting.tracker import IdempotencyTracker

__all__ = [
    "IdempotencyTracker",
    "MintOrchestrator",
    "MintSubmissionQueue",
    "normalize_tx_hash",
]
