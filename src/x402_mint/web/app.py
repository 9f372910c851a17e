"""aiohttp handlers for the x402 mint endpoints."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from aiohttp import web

from x402_mint.errors import MintError, Misconfigured, PaymentRejected
from x402_mint.models.records import PaymentOutcome
from x402_mint.web.discovery import confirm_discovery, mint_discovery, pay_discovery

if TYPE_CHECKING:
    from x402_mint.service import MintService

log = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("service", "MintService")

TX_HASH_HEADERS = ("x-402-txhash", "x-402-tx-hash", "x-tx-hash")


def create_app(service: MintService) -> web.Application:
    """Build the HTTP application around a started MintService."""
    app = web.Application()
    app[SERVICE_KEY] = service

    app.router.add_get("/api/402", _discovery(mint_discovery))
    app.router.add_post("/api/402", handle_mint)
    app.router.add_get("/api/confirm", _discovery(confirm_discovery))
    app.router.add_post("/api/confirm", handle_confirm)
    app.router.add_post("/api/notify", handle_notify)
    app.router.add_get("/api/pay", _discovery(pay_discovery))
    app.router.add_post("/api/pay", handle_pay)
    return app


def _discovery(builder):
    async def handler(request: web.Request) -> web.Response:
        cfg = request.app[SERVICE_KEY].cfg
        return web.json_response(builder(cfg), status=402)

    return handler


# ── Handlers ───────────────────────────────────────────


async def handle_mint(request: web.Request) -> web.Response:
    """x402 pay-then-mint: txHash from body, then headers, then query."""
    service = request.app[SERVICE_KEY]
    body = await _read_body(request)

    if (resource := body.get("resource")) and resource != service.cfg.x402.resource:
        return web.json_response({"error": "Invalid resource"}, status=400)

    tx_hash = (
        body.get("txHash")
        or _header_tx_hash(request)
        or request.query.get("txHash")
    )
    if not tx_hash:
        return _missing_tx_hash(service, "Retry POST with txHash in body or x-402-txhash header.")
    return await _process(service, tx_hash)


async def handle_confirm(request: web.Request) -> web.Response:
    """Confirmation-only endpoint: txHash in the JSON body."""
    service = request.app[SERVICE_KEY]
    body = await _read_body(request)
    tx_hash = body.get("txHash")
    if not tx_hash:
        return _missing_tx_hash(service, "POST {\"txHash\": \"0x...\"}")
    return await _process(service, tx_hash)


async def handle_notify(request: web.Request) -> web.Response:
    """Payment notification from a facilitator."""
    service = request.app[SERVICE_KEY]
    body = await _read_body(request)

    if (resource := body.get("resource")) and resource != service.cfg.x402.resource:
        return web.json_response({"error": "Invalid resource"}, status=400)

    tx_hash = body.get("txHash")
    if not tx_hash:
        return _missing_tx_hash(service, "Notification must carry txHash.")
    return await _process(service, tx_hash)


async def handle_pay(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    return web.json_response({
        "x402Version": service.cfg.x402.version,
        "ok": True,
        "note": "Payment completed. Call /api/confirm with your txHash to mint.",
    })


# ── Helpers ────────────────────────────────────────────


async def _process(service: MintService, tx_hash: Any) -> web.Response:
    version = service.cfg.x402.version
    try:
        outcome = await service.process_payment(tx_hash)
    except PaymentRejected as exc:
        return web.json_response({"x402Version": version, **exc.to_dict()}, status=400)
    except Misconfigured as exc:
        return web.json_response({"x402Version": version, **exc.to_dict()}, status=500)
    except MintError as exc:
        return web.json_response({"x402Version": version, **exc.to_dict()}, status=503)
    except Exception as exc:
        log.error("Unexpected error processing %r: %s", tx_hash, exc, exc_info=True)
        return web.json_response(
            {"x402Version": version, "error": "Internal error", "code": "internal_error", "retryable": True},
            status=500,
        )
    return web.json_response(_outcome_body(outcome, version))


def _outcome_body(outcome: PaymentOutcome, version: int) -> dict[str, Any]:
    body: dict[str, Any] = {
        "x402Version": version,
        "ok": outcome.ok,
        "mintedTo": outcome.minted_to,
        "nftTxHash": outcome.mint_tx_hash,
    }
    if outcome.already_processed:
        body["note"] = "Already processed"
        body["txHash"] = outcome.tx_hash
    else:
        body["note"] = outcome.note
    return body


def _missing_tx_hash(service: MintService, hint: str) -> web.Response:
    return web.json_response(
        {
            "x402Version": service.cfg.x402.version,
            "error": "Missing txHash",
            "code": "invalid_claim",
            "retryable": False,
            "hint": hint,
        },
        status=400,
    )


def _header_tx_hash(request: web.Request) -> str | None:
    for name in TX_HASH_HEADERS:
        if value := request.headers.get(name):
            return value
    return None


async def _read_body(request: web.Request) -> dict[str, Any]:
    """JSON body as a dict; anything else reads as empty."""
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        log.debug("Ignoring non-JSON body on %s", request.path)
        return {}
    return body if isinstance(body, dict) else {}
