"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from eth_utils import is_address, to_checksum_address

from x402_mint.models.config import MinterConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "X402_MINT_",
) -> MinterConfig:
    """Load service configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (X402_MINT_OWNER_PRIVATE_KEY, etc.)
        2. TOML config file
        3. Defaults from MinterConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = MinterConfig()

    # ── Server section ─────────────────────────────────────
    server = raw.get("server", {})
    if v := server.get("host"):
        cfg.server.host = str(v)
    if v := server.get("port"):
        cfg.server.port = int(v)
    if v := server.get("log_level"):
        cfg.server.log_level = str(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("rpc_url"):
        cfg.chain.rpc_url = str(v)
    if v := chain.get("chain_id"):
        cfg.chain.chain_id = int(v)
    if v := chain.get("payment_token_address"):
        cfg.chain.payment_token_address = str(v)
    if v := chain.get("treasury_address"):
        cfg.chain.treasury_address = str(v)
    if v := chain.get("nft_contract_address"):
        cfg.chain.nft_contract_address = str(v)
    if v := chain.get("owner_private_key"):
        cfg.chain.owner_private_key = str(v)
    if v := chain.get("mint_gas_limit"):
        cfg.chain.mint_gas_limit = int(v)
    if v := chain.get("rpc_timeout"):
        cfg.chain.rpc_timeout = int(v)
    if v := chain.get("confirmation_timeout"):
        cfg.chain.confirmation_timeout = int(v)

    # ── x402 section ───────────────────────────────────────
    x402 = raw.get("x402", {})
    if v := x402.get("price"):
        cfg.x402.price = int(v)
    if v := x402.get("version"):
        cfg.x402.version = int(v)
    if v := x402.get("network"):
        cfg.x402.network = str(v)
    if v := x402.get("asset"):
        cfg.x402.asset = str(v)
    if v := x402.get("resource"):
        cfg.x402.resource = str(v)
    if v := x402.get("max_timeout_seconds"):
        cfg.x402.max_timeout_seconds = int(v)
    if v := x402.get("project"):
        cfg.x402.project = str(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}OWNER_PRIVATE_KEY"):
        cfg.chain.owner_private_key = secret
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.chain.rpc_url = rpc
    if token := os.environ.get(f"{env_prefix}PAYMENT_TOKEN_ADDRESS"):
        cfg.chain.payment_token_address = token
    if treasury := os.environ.get(f"{env_prefix}TREASURY_ADDRESS"):
        cfg.chain.treasury_address = treasury
    if nft := os.environ.get(f"{env_prefix}NFT_CONTRACT_ADDRESS"):
        cfg.chain.nft_contract_address = nft
    if price := os.environ.get(f"{env_prefix}PRICE"):
        cfg.x402.price = int(price)
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.x402.network = net
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    # Checksum addresses so later comparisons are exact
    cfg.chain.payment_token_address = _checksum("payment_token_address", cfg.chain.payment_token_address)
    cfg.chain.treasury_address = _checksum("treasury_address", cfg.chain.treasury_address)
    cfg.chain.nft_contract_address = _checksum("nft_contract_address", cfg.chain.nft_contract_address)

    # Expand ~ in paths
    if cfg.db_path and cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _checksum(name: str, address: str) -> str:
    """Checksum a configured address; empty stays empty."""
    if not address:
        return ""
    if not is_address(address):
        raise ValueError(f"{name} is not a valid address: {address!r}")
    return to_checksum_address(address)
