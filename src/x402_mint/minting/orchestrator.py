"""Mint orchestrator - takes a payment claim from receipt to confirmed mint."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, TypeVar

from x402_mint.errors import (
    InvalidClaim,
    LedgerUnavailable,
    Misconfigured,
    PaymentRejected,
    TransientError,
)
from x402_mint.interfaces.ledger import LedgerClient
from x402_mint.minting.queue import MintSubmissionQueue
from x402_mint.minting.tracker import IdempotencyTracker
from x402_mint.models.records import (
    MintRequest,
    MintState,
    PaymentClaim,
    PaymentOutcome,
    PaymentRecord,
    ProcessedPayment,
)
from x402_mint.payments.verifier import PaymentVerifier

log = logging.getLogger(__name__)

T = TypeVar("T")

TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

NOTE_MINTED = "Minted after verified USDC payment."
NOTE_ALREADY_PROCESSED = "already processed"


def normalize_tx_hash(tx_hash: object) -> str:
    """Validate a claimed hash and return its lowercase form."""
    if not isinstance(tx_hash, str) or not TX_HASH_PATTERN.match(tx_hash):
        raise InvalidClaim()
    return tx_hash.lower()


def _log_detached(task: asyncio.Future) -> None:
    """Report how a claim finished after its caller went away."""
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        log.warning("Claim failed after its caller left: %s", exc)
    else:
        outcome = task.result()
        log.info("Claim %s completed after its caller left", outcome.tx_hash[:18])


class MintOrchestrator:
    """Runs one claim through Received → Validated → Verified → Reserved →
    Submitted → Confirmed, or ends it in Rejected / Failed.

    Claims for the same hash are serialized through the tracker's
    reservation; mints for different hashes are serialized through the
    submission queue. A hash is marked processed only after its mint is
    confirmed, so every failure after verification is safe to retry.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        verifier: PaymentVerifier,
        tracker: IdempotencyTracker,
        queue: MintSubmissionQueue,
        rpc_timeout: float = 30,
    ) -> None:
        self._ledger = ledger
        self._verifier = verifier
        self._tracker = tracker
        self._queue = queue
        self._rpc_timeout = rpc_timeout

    async def process_payment(self, claim: PaymentClaim) -> PaymentOutcome:
        """Verify the payment in ``claim`` and mint to its payer at most once.

        Raises PaymentRejected, TransientError or Misconfigured.
        """
        tx_hash = normalize_tx_hash(claim.tx_hash)
        self._transition(tx_hash, MintState.VALIDATED)

        prior = await self._tracker.get(tx_hash)
        if prior is not None:
            return self._already_processed(prior)

        # A mint that has been queued must still be recorded if the caller goes away
        inner = asyncio.ensure_future(self._process_reserved(tx_hash))
        try:
            return await asyncio.shield(inner)
        except asyncio.CancelledError:
            inner.add_done_callback(_log_detached)
            raise

    async def _process_reserved(self, tx_hash: str) -> PaymentOutcome:
        async with self._tracker.reserve(tx_hash):
            # Another task may have finished this hash while we waited
            prior = await self._tracker.get(tx_hash)
            if prior is not None:
                return self._already_processed(prior)

            try:
                record = await self._verify(tx_hash)
                self._transition(tx_hash, MintState.VERIFIED)

                await self._check_owner()
                self._transition(tx_hash, MintState.RESERVED)
                self._transition(tx_hash, MintState.SUBMITTED)
                result = await self._queue.submit(MintRequest(payer=record.payer, quantity=1))
            except PaymentRejected as exc:
                self._transition(tx_hash, MintState.REJECTED, exc.code)
                raise
            except TransientError as exc:
                self._transition(tx_hash, MintState.FAILED, exc.code)
                raise
            except Misconfigured as exc:
                log.error("Refusing to mint for %s: %s %s", tx_hash[:18], exc.message, exc.details)
                raise

            await self._tracker.mark_processed(tx_hash, result, record.amount_paid)
            self._transition(tx_hash, MintState.CONFIRMED, result.mint_tx_hash)

        return PaymentOutcome(
            ok=True,
            tx_hash=tx_hash,
            minted_to=result.recipient,
            mint_tx_hash=result.mint_tx_hash,
            note=NOTE_MINTED,
        )

    # ── Steps ─────────────────────────────────────────────

    async def _verify(self, tx_hash: str) -> PaymentRecord:
        receipt = await self._bounded("get_receipt", self._ledger.get_receipt(tx_hash))
        return self._verifier.verify(receipt)

    async def _check_owner(self) -> None:
        owner = await self._bounded("get_contract_owner", self._ledger.get_contract_owner())
        signer = self._ledger.signer_address
        if owner.lower() != signer.lower():
            raise Misconfigured(
                "Misconfiguration: signer is not contract owner",
                {"onchainOwner": owner, "signer": signer},
            )

    async def _bounded(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, self._rpc_timeout)
        except asyncio.TimeoutError:
            raise LedgerUnavailable(operation, f"timed out after {self._rpc_timeout}s") from None

    # ── Helpers ───────────────────────────────────────────

    def _already_processed(self, prior: ProcessedPayment) -> PaymentOutcome:
        log.info("Payment %s already processed (mint %s)", prior.tx_hash[:18], prior.mint_tx_hash[:18])
        return PaymentOutcome(
            ok=True,
            tx_hash=prior.tx_hash,
            minted_to=prior.recipient,
            mint_tx_hash=prior.mint_tx_hash,
            note=NOTE_ALREADY_PROCESSED,
            already_processed=True,
        )

    @staticmethod
    def _transition(tx_hash: str, state: MintState, detail: str = "") -> None:
        if state in (MintState.REJECTED, MintState.FAILED):
            log.warning("Claim %s -> %s (%s)", tx_hash[:18], state.value, detail)
        elif state is MintState.CONFIRMED:
            log.info("Claim %s -> %s (mint %s)", tx_hash[:18], state.value, detail[:18])
        else:
            log.debug("Claim %s -> %s", tx_hash[:18], state.value)
