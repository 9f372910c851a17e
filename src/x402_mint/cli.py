"""CLI entry point for the x402_mint service."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from x402_mint.config import load_config
from x402_mint.errors import MintError
from x402_mint.service import MintService, run_service
from x402_mint.storage.sqlite import SQLiteProcessedStore


def _require_config(cfg) -> None:
    """Exit with error if any required setting is missing."""
    if missing := cfg.missing():
        click.echo(f"Error: missing configuration: {', '.join(missing)}", err=True)
        click.echo("Set X402_MINT_* env vars or the [chain] section of the config.", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """x402_mint - Mint an NFT for every verified x402 USDC payment."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Service ────────────────────────────────────────────


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Serve the x402 mint endpoints."""
    cfg = load_config(ctx.obj["config_path"])
    _require_config(cfg)

    click.echo(f"Starting x402_mint on {cfg.server.host}:{cfg.server.port}")
    asyncio.run(run_service(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show service configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"RPC URL:    {cfg.chain.rpc_url}")
    click.echo(f"Chain ID:   {cfg.chain.chain_id}")
    click.echo(f"Network:    {cfg.x402.network}")
    click.echo(f"NFT:        {cfg.chain.nft_contract_address or '(not set)'}")
    click.echo(f"Token:      {cfg.chain.payment_token_address or '(not set)'}")
    click.echo(f"Treasury:   {cfg.chain.treasury_address or '(not set)'}")
    click.echo(f"Price:      {cfg.x402.price} ({cfg.x402.asset} base units)")
    click.echo(f"Resource:   {cfg.x402.resource}")
    click.echo(f"DB path:    {cfg.db_path or '(memory)'}")
    click.echo(f"Secret:     {'***configured***' if cfg.chain.owner_private_key else '(not set)'}")


@cli.command()
@click.pass_context
def owner(ctx: click.Context) -> None:
    """Check that the signer owns the NFT contract."""
    cfg = load_config(ctx.obj["config_path"])
    _require_config(cfg)

    async def _owner():
        service = MintService(cfg)
        try:
            onchain, signer = await service.owner_status()
        finally:
            await service.close()

        click.echo(f"Contract owner: {onchain}")
        click.echo(f"Signer:         {signer}")
        if onchain.lower() != signer.lower():
            click.echo("\nSigner is NOT the contract owner; mints will be refused.", err=True)
            sys.exit(1)
        click.echo("\nSigner owns the contract.")

    asyncio.run(_owner())


# ── Operations ─────────────────────────────────────────


@cli.command()
@click.argument("tx_hash")
@click.pass_context
def process(ctx: click.Context, tx_hash: str) -> None:
    """Verify a payment by TX_HASH and mint to its payer."""
    cfg = load_config(ctx.obj["config_path"])
    _require_config(cfg)

    async def _process():
        service = MintService(cfg)
        await service.start()
        try:
            outcome = await service.process_payment(tx_hash)
        except MintError as exc:
            click.echo(json.dumps(exc.to_dict(), indent=2), err=True)
            sys.exit(1)
        finally:
            await service.close()

        if outcome.already_processed:
            click.echo("Already processed")
        click.echo(f"Minted to:  {outcome.minted_to}")
        click.echo(f"Mint tx:    {outcome.mint_tx_hash}")

    asyncio.run(_process())


@cli.command()
@click.option("--limit", type=int, default=20, help="Number of records to show")
@click.pass_context
def history(ctx: click.Context, limit: int) -> None:
    """Show recently processed payments."""
    cfg = load_config(ctx.obj["config_path"])
    if not cfg.db_path:
        click.echo("No db_path configured; processed payments are kept in memory only.")
        return

    async def _history():
        store = SQLiteProcessedStore(cfg.db_path)
        await store.initialize()
        try:
            records = await store.list_recent(limit)
        finally:
            await store.close()

        if not records:
            click.echo("No processed payments.")
            return
        for r in records:
            click.echo(f"{r.processed_at}  {r.tx_hash[:18]}...  -> {r.recipient}  mint {r.mint_tx_hash[:18]}...")

    asyncio.run(_history())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
