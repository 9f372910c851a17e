"""x402 discovery documents advertised with HTTP 402 on GET."""

from __future__ import annotations

from typing import Any

from x402_mint.models.config import MinterConfig

_MINT_OUTPUT = {
    "ok": True,
    "mintedTo": "0x...",
    "nftTxHash": "0x...",
    "note": "Mint completed.",
}


def _accepts(
    cfg: MinterConfig,
    *,
    max_amount: int,
    resource: str,
    description: str,
    output_schema: dict[str, Any],
    extra: dict[str, Any],
) -> dict[str, Any]:
    return {
        "x402Version": cfg.x402.version,
        "accepts": [
            {
                "scheme": "exact",
                "network": cfg.x402.network,
                "maxAmountRequired": str(max_amount),
                "resource": resource,
                "description": description,
                "mimeType": "application/json",
                "payTo": cfg.chain.treasury_address,
                "maxTimeoutSeconds": cfg.x402.max_timeout_seconds,
                "asset": cfg.x402.asset,
                "outputSchema": output_schema,
                "extra": {"project": cfg.x402.project, **extra},
            }
        ],
    }


def mint_discovery(cfg: MinterConfig) -> dict[str, Any]:
    """Pay-then-mint resource; the x402 client fills in txHash after paying."""
    return _accepts(
        cfg,
        max_amount=cfg.x402.price,
        resource=cfg.x402.resource,
        description=(
            f"Mint one {cfg.x402.project} NFT automatically after "
            f"{cfg.x402.asset} payment confirmation."
        ),
        output_schema={
            "input": {
                "type": "http",
                "method": "POST",
                "bodyType": "json",
                "bodyFields": {
                    "txHash": {
                        "type": "string",
                        "required": False,
                        "description": "Filled automatically by x402 after payment. Leave empty.",
                    },
                    "resource": {
                        "type": "string",
                        "required": False,
                        "description": "Optional echo of the resource id.",
                    },
                },
                "headerFields": {
                    "x-402-txhash": {
                        "type": "string",
                        "required": False,
                        "description": "Alternative place where x402 may send the txHash.",
                    },
                },
            },
            "output": _MINT_OUTPUT,
        },
        extra={"autoConfirm": True, "onePerPayment": True},
    )


def confirm_discovery(cfg: MinterConfig) -> dict[str, Any]:
    """Confirmation-only resource: costs nothing, takes a txHash."""
    return _accepts(
        cfg,
        max_amount=0,
        resource=f"confirm:{cfg.x402.project.lower()}:mint",
        description=(
            f"Confirm a {cfg.x402.asset} payment by txHash and mint one "
            f"{cfg.x402.project} NFT to the payer."
        ),
        output_schema={
            "input": {
                "type": "http",
                "method": "POST",
                "bodyType": "json",
                "bodyFields": {
                    "txHash": {
                        "type": "string",
                        "required": True,
                        "description": (
                            f"{cfg.x402.asset} payment tx hash. "
                            "Must be a Transfer to the treasury."
                        ),
                    },
                },
            },
            "output": _MINT_OUTPUT,
        },
        extra={"type": "confirmation-only"},
    )


def pay_discovery(cfg: MinterConfig) -> dict[str, Any]:
    """Payment-only resource: the payer's wallet executes the transfer."""
    return _accepts(
        cfg,
        max_amount=cfg.x402.price,
        resource=f"pay:{cfg.x402.project.lower()}:{cfg.x402.asset.lower()}",
        description=(
            f"Pay {cfg.x402.asset} to the {cfg.x402.project} treasury. "
            "After paying, use /api/confirm with the txHash to mint."
        ),
        output_schema={
            "input": {"type": "http", "method": "POST", "bodyType": "json"},
            "output": {"ok": True, "note": "Payment completed. Now call /api/confirm with txHash."},
        },
        extra={"type": "payment-only"},
    )
