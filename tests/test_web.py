"""HTTP surface: discovery documents, txHash extraction and status mapping."""

from __future__ import annotations

import pytest
from aiohttp import test_utils

from x402_mint.errors import LedgerUnavailable
from x402_mint.web.app import create_app

from tests.conftest import OTHER_PAYER, PAYER, PRICE, TREASURY
from tests.factories import make_receipt, make_transfer_log, make_tx_hash


@pytest.fixture
async def client(service):
    c = test_utils.TestClient(test_utils.TestServer(create_app(service)))
    await c.start_server()
    yield c
    await c.close()


# ── Discovery ────────────────────────────────────────────────────


async def test_get_402_returns_discovery(client):
    resp = await client.get("/api/402")
    assert resp.status == 402

    body = await resp.json()
    assert body["x402Version"] == 1
    accept = body["accepts"][0]
    assert accept["scheme"] == "exact"
    assert accept["maxAmountRequired"] == str(PRICE)
    assert accept["payTo"] == TREASURY
    assert accept["resource"] == "mint:x402apes:1"
    assert accept["asset"] == "USDC"


async def test_get_confirm_is_free(client):
    resp = await client.get("/api/confirm")
    assert resp.status == 402
    accept = (await resp.json())["accepts"][0]
    assert accept["maxAmountRequired"] == "0"
    assert accept["resource"] == "confirm:x402apes:mint"


async def test_get_pay_discovery(client):
    resp = await client.get("/api/pay")
    assert resp.status == 402
    accept = (await resp.json())["accepts"][0]
    assert accept["resource"] == "pay:x402apes:usdc"
    assert accept["extra"]["type"] == "payment-only"


async def test_post_pay_is_informational(client):
    resp = await client.post("/api/pay")
    assert resp.status == 200
    assert (await resp.json())["ok"] is True


# ── Minting ──────────────────────────────────────────────────────


async def test_post_402_with_body_mints(client, mock_ledger):
    tx_hash = make_tx_hash(1)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    resp = await client.post("/api/402", json={"txHash": tx_hash})
    assert resp.status == 200

    body = await resp.json()
    assert body["ok"] is True
    assert body["mintedTo"] == PAYER
    assert body["nftTxHash"] == mock_ledger.confirmed[0].mint_tx_hash
    assert body["x402Version"] == 1


@pytest.mark.parametrize("header", ["x-402-txhash", "x-402-tx-hash", "x-tx-hash"])
async def test_post_402_reads_header(client, mock_ledger, header):
    tx_hash = make_tx_hash(2)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    resp = await client.post("/api/402", headers={header: tx_hash})
    assert resp.status == 200


async def test_post_402_reads_query(client, mock_ledger):
    tx_hash = make_tx_hash(3)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    resp = await client.post("/api/402", params={"txHash": tx_hash})
    assert resp.status == 200


async def test_post_402_wrong_resource(client, mock_ledger):
    resp = await client.post("/api/402", json={"txHash": make_tx_hash(4), "resource": "mint:other:1"})
    assert resp.status == 400
    assert (await resp.json())["error"] == "Invalid resource"
    assert mock_ledger.receipt_calls == []


async def test_post_402_missing_tx_hash(client):
    resp = await client.post("/api/402", json={})
    assert resp.status == 400
    body = await resp.json()
    assert body["error"] == "Missing txHash"
    assert "hint" in body


async def test_confirm_only_reads_body(client, mock_ledger):
    tx_hash = make_tx_hash(5)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    resp = await client.post("/api/confirm", headers={"x-402-txhash": tx_hash})
    assert resp.status == 400

    resp = await client.post("/api/confirm", json={"txHash": tx_hash})
    assert resp.status == 200


async def test_notify_mints(client, mock_ledger):
    tx_hash = make_tx_hash(6)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    resp = await client.post("/api/notify", json={"txHash": tx_hash, "resource": "mint:x402apes:1"})
    assert resp.status == 200


async def test_repeat_claim_reports_already_processed(client, mock_ledger):
    tx_hash = make_tx_hash(7)
    mock_ledger.add_receipt(make_receipt(tx_hash))

    first = await (await client.post("/api/402", json={"txHash": tx_hash})).json()
    resp = await client.post("/api/confirm", json={"txHash": tx_hash})
    assert resp.status == 200

    body = await resp.json()
    assert body["note"] == "Already processed"
    assert body["txHash"] == tx_hash
    assert body["nftTxHash"] == first["nftTxHash"]
    assert len(mock_ledger.submit_calls) == 1


# ── Error mapping ────────────────────────────────────────────────


async def test_invalid_hash_is_400(client):
    resp = await client.post("/api/402", json={"txHash": "0x1234"})
    assert resp.status == 400
    body = await resp.json()
    assert body["code"] == "invalid_claim"
    assert body["retryable"] is False


async def test_insufficient_amount_is_400(client, mock_ledger):
    tx_hash = make_tx_hash(8)
    mock_ledger.add_receipt(make_receipt(tx_hash, [make_transfer_log(value=1)]))

    resp = await client.post("/api/402", json={"txHash": tx_hash})
    assert resp.status == 400
    assert (await resp.json())["code"] == "insufficient_amount"


async def test_unknown_hash_is_503(client):
    resp = await client.post("/api/402", json={"txHash": make_tx_hash(9)})
    assert resp.status == 503
    body = await resp.json()
    assert body["code"] == "receipt_not_found"
    assert body["retryable"] is True


async def test_ledger_outage_is_503(client, mock_ledger):
    mock_ledger.receipt_error = LedgerUnavailable("get_receipt", "connection refused")

    resp = await client.post("/api/402", json={"txHash": make_tx_hash(10)})
    assert resp.status == 503


async def test_misconfigured_is_500(client, mock_ledger):
    tx_hash = make_tx_hash(11)
    mock_ledger.add_receipt(make_receipt(tx_hash))
    mock_ledger.owner = OTHER_PAYER

    resp = await client.post("/api/402", json={"txHash": tx_hash})
    assert resp.status == 500
    body = await resp.json()
    assert body["code"] == "misconfigured"
    assert body["details"]["onchainOwner"] == OTHER_PAYER


async def test_unexpected_error_is_json_500(client, mock_ledger):
    mock_ledger.receipt_error = RuntimeError("boom")

    resp = await client.post("/api/402", json={"txHash": make_tx_hash(12)})
    assert resp.status == 500
    assert resp.content_type == "application/json"
    body = await resp.json()
    assert body["x402Version"] == 1
    assert body["error"] == "Internal error"
