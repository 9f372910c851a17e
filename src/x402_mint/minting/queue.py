"""Mint submission queue - single worker owning the signing identity."""

from __future__ import annotations

import asyncio
import logging

from x402_mint.errors import MintError, SubmissionFailed
from x402_mint.interfaces.ledger import LedgerClient
from x402_mint.models.records import MintRequest, MintResult

log = logging.getLogger(__name__)


class MintSubmissionQueue:
    """Serializes mint calls from one signing identity.

    Jobs are served in arrival order by a single worker task, and each job
    is submitted and confirmed before the next one is broadcast, so two
    mints never compete for the same account nonce.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        submit_timeout: float = 30,
        confirmation_timeout: float = 180,
    ) -> None:
        self._ledger = ledger
        self._submit_timeout = submit_timeout
        self._confirmation_timeout = confirmation_timeout
        self._jobs: asyncio.Queue[tuple[MintRequest, asyncio.Future[MintResult]]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None

    # ── Lifecycle ─────────────────────────────────────────

    def start(self) -> None:
        """Start the worker if it isn't running."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="mint-submission-queue")

    async def close(self) -> None:
        """Stop the worker. Jobs still queued fail as retryable."""
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        while not self._jobs.empty():
            _, fut = self._jobs.get_nowait()
            if not fut.done():
                fut.set_exception(SubmissionFailed("rejected", "submission queue closed"))

    def pending(self) -> int:
        """Jobs waiting behind the one in progress."""
        return self._jobs.qsize()

    # ── Submission ────────────────────────────────────────

    async def submit(self, request: MintRequest) -> MintResult:
        """Queue a mint and wait until it is confirmed or has failed."""
        self.start()
        fut: asyncio.Future[MintResult] = asyncio.get_running_loop().create_future()
        await self._jobs.put((request, fut))
        return await fut

    async def _run(self) -> None:
        while True:
            request, fut = await self._jobs.get()
            try:
                if fut.done():
                    continue
                result = await self._execute(request)
            except asyncio.CancelledError:
                if not fut.done():
                    fut.set_exception(SubmissionFailed("timeout", "submission queue closed mid-mint"))
                raise
            except MintError as exc:
                if not fut.done():
                    fut.set_exception(exc)
            except Exception as exc:
                log.error("Unexpected error minting to %s: %s", request.payer, exc, exc_info=True)
                if not fut.done():
                    fut.set_exception(SubmissionFailed("rejected", str(exc)))
            else:
                if not fut.done():
                    fut.set_result(result)
            finally:
                self._jobs.task_done()

    async def _execute(self, request: MintRequest) -> MintResult:
        try:
            pending = await asyncio.wait_for(
                self._ledger.submit_mint(request), self._submit_timeout,
            )
        except asyncio.TimeoutError:
            raise SubmissionFailed(
                "timeout", f"submission not acknowledged after {self._submit_timeout}s",
            ) from None

        try:
            return await asyncio.wait_for(
                self._ledger.await_confirmation(pending, self._confirmation_timeout),
                self._confirmation_timeout + self._submit_timeout,
            )
        except asyncio.TimeoutError:
            raise SubmissionFailed(
                "timeout", f"not confirmed after {self._confirmation_timeout}s", pending.tx_hash,
            ) from None
