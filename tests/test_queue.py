"""Mint submission queue: one mint at a time, in arrival order."""

from __future__ import annotations

import asyncio

import pytest

from x402_mint.errors import SubmissionFailed
from x402_mint.minting.queue import MintSubmissionQueue
from x402_mint.models.records import MintRequest

from tests.conftest import OTHER_PAYER, PAYER, TREASURY


async def test_submit_returns_confirmed_result(queue, mock_ledger):
    result = await queue.submit(MintRequest(payer=PAYER))

    assert result.recipient == PAYER
    assert result == mock_ledger.confirmed[0]


async def test_jobs_run_in_arrival_order(queue, mock_ledger):
    mock_ledger.submit_delay = 0.01
    payers = [PAYER, OTHER_PAYER, TREASURY]

    results = await asyncio.gather(*(queue.submit(MintRequest(payer=p)) for p in payers))

    assert [r.payer for r in mock_ledger.submit_calls] == payers
    assert [r.recipient for r in results] == payers


async def test_next_submission_waits_for_confirmation(queue, mock_ledger):
    mock_ledger.confirm_delay = 0.02

    await asyncio.gather(*(queue.submit(MintRequest(payer=PAYER)) for _ in range(3)))

    assert mock_ledger.max_in_flight == 1
    assert len(mock_ledger.confirmed) == 3


async def test_failure_does_not_stop_the_worker(queue, mock_ledger):
    mock_ledger.submit_errors = [SubmissionFailed("rejected", "insufficient_funds")]

    with pytest.raises(SubmissionFailed):
        await queue.submit(MintRequest(payer=PAYER))
    result = await queue.submit(MintRequest(payer=OTHER_PAYER))

    assert result.recipient == OTHER_PAYER


async def test_unexpected_error_becomes_submission_failed(queue, mock_ledger):
    mock_ledger.submit_errors = [RuntimeError("boom")]

    with pytest.raises(SubmissionFailed) as info:
        await queue.submit(MintRequest(payer=PAYER))
    assert info.value.kind == "rejected"


async def test_slow_submission_times_out(mock_ledger):
    q = MintSubmissionQueue(mock_ledger, submit_timeout=0.05, confirmation_timeout=1)
    mock_ledger.submit_delay = 1
    try:
        with pytest.raises(SubmissionFailed) as info:
            await q.submit(MintRequest(payer=PAYER))
    finally:
        await q.close()

    assert info.value.kind == "timeout"
    assert mock_ledger.in_flight == 0


async def test_close_fails_queued_and_running_jobs(mock_ledger):
    q = MintSubmissionQueue(mock_ledger, submit_timeout=1, confirmation_timeout=1)
    mock_ledger.confirm_delay = 0.5

    running = asyncio.create_task(q.submit(MintRequest(payer=PAYER)))
    waiting = asyncio.create_task(q.submit(MintRequest(payer=OTHER_PAYER)))
    await asyncio.sleep(0.05)
    assert q.pending() == 1

    await q.close()

    for task in (running, waiting):
        with pytest.raises(SubmissionFailed):
            await task
    assert len(mock_ledger.submit_calls) == 1
