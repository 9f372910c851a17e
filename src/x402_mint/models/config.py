"""Configuration models for the mint service."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """HTTP surface settings."""

    host: str = "0.0.0.0"
    port: int = 8402
    log_level: str = "info"


@dataclass
class ChainConfig:
    """EVM network, contracts and the signing identity."""

    rpc_url: str = "https://mainnet.base.org"
    chain_id: int = 8453
    payment_token_address: str = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"  # USDC on Base
    treasury_address: str = ""
    nft_contract_address: str = ""
    owner_private_key: str = ""  # loaded from env var X402_MINT_OWNER_PRIVATE_KEY
    mint_gas_limit: int = 300_000
    rpc_timeout: int = 30  # seconds per read/submit round-trip
    confirmation_timeout: int = 180  # seconds to wait for a mint receipt


@dataclass
class X402Config:
    """Pricing and the advertised x402 payment requirements."""

    price: int = 10_000_000  # 10 USDC (6 decimals)
    version: int = 1
    network: str = "base"
    asset: str = "USDC"
    resource: str = "mint:x402apes:1"
    max_timeout_seconds: int = 600
    project: str = "x402Apes"


@dataclass
class MinterConfig:
    """Complete service configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    x402: X402Config = field(default_factory=X402Config)

    # Storage: empty keeps processed payments in memory only
    db_path: str = ""

    def missing(self) -> list[str]:
        """Names of required settings that are not configured."""
        required = {
            "owner_private_key": self.chain.owner_private_key,
            "nft_contract_address": self.chain.nft_contract_address,
            "treasury_address": self.chain.treasury_address,
            "payment_token_address": self.chain.payment_token_address,
        }
        return [name for name, value in required.items() if not value]
