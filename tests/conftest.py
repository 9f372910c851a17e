"""Shared fixtures for x402_mint tests."""

from __future__ import annotations

import pytest
from eth_utils import to_checksum_address
from pytest_metadata.plugin import metadata_key

from x402_mint.minting.orchestrator import MintOrchestrator
from x402_mint.minting.queue import MintSubmissionQueue
from x402_mint.minting.tracker import IdempotencyTracker
from x402_mint.models.config import ChainConfig, MinterConfig, X402Config
from x402_mint.payments.verifier import PaymentVerifier
from x402_mint.service import MintService
from x402_mint.storage.memory import MemoryProcessedStore

from tests.mocks import MockLedgerClient

# Well-known development keys (anvil/hardhat accounts 0-3); never funded on mainnet
OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PAYER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
OTHER_PAYER = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
TREASURY = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
NFT_CONTRACT = to_checksum_address("0x" + "ab" * 20)
OTHER_TOKEN = to_checksum_address("0x" + "cd" * 20)

PRICE = 10_000_000

EXPLORER_BASE = "https://basescan.org"


def basescan_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to basescan for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:10]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Base (mocked ledger)"
    meta["Payment Token"] = USDC
    meta["NFT Contract"] = NFT_CONTRACT
    meta["Treasury"] = TREASURY


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable basescan links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Base Explorer Links</strong><br/>"
        f'USDC: {basescan_link("token", USDC, USDC)}<br/>'
        f'Treasury: {basescan_link("address", TREASURY, TREASURY)}'
        "</div>"
    )


def make_test_config(**overrides) -> MinterConfig:
    """Build a MinterConfig suitable for testing."""
    chain = ChainConfig(
        rpc_url="http://127.0.0.1:8545",
        chain_id=8453,
        payment_token_address=USDC,
        treasury_address=TREASURY,
        nft_contract_address=NFT_CONTRACT,
        owner_private_key=OWNER_KEY,
        rpc_timeout=1,
        confirmation_timeout=2,
    )
    defaults = dict(chain=chain, x402=X402Config(price=PRICE), db_path="")
    defaults.update(overrides)
    return MinterConfig(**defaults)


@pytest.fixture
def test_config():
    """Default MinterConfig for tests."""
    return make_test_config()


@pytest.fixture
def mock_ledger():
    return MockLedgerClient(signer=OWNER_ADDRESS)


@pytest.fixture
def verifier():
    return PaymentVerifier(payment_token=USDC, treasury=TREASURY, price=PRICE)


@pytest.fixture
def store():
    return MemoryProcessedStore()


@pytest.fixture
def tracker(store):
    return IdempotencyTracker(store)


@pytest.fixture
async def queue(mock_ledger):
    """Started MintSubmissionQueue over the mock ledger."""
    q = MintSubmissionQueue(mock_ledger, submit_timeout=1, confirmation_timeout=1)
    q.start()
    yield q
    await q.close()


@pytest.fixture
def orchestrator(mock_ledger, verifier, tracker, queue):
    """Fully wired MintOrchestrator with a mocked ledger."""
    return MintOrchestrator(
        ledger=mock_ledger,
        verifier=verifier,
        tracker=tracker,
        queue=queue,
        rpc_timeout=1,
    )


@pytest.fixture
async def service(test_config, mock_ledger):
    """Started MintService around the mock ledger and an in-memory store."""
    s = MintService(test_config, ledger=mock_ledger, store=MemoryProcessedStore())
    await s.start()
    yield s
    await s.close()
