"""Service wiring - builds the core components from configuration and serves them."""

from __future__ import annotations

import asyncio
import logging
import signal

from aiohttp import web

from x402_mint.evm.client import Web3LedgerClient
from x402_mint.interfaces.ledger import LedgerClient
from x402_mint.interfaces.store import ProcessedPaymentStore
from x402_mint.minting.orchestrator import MintOrchestrator
from x402_mint.minting.queue import MintSubmissionQueue
from x402_mint.minting.tracker import IdempotencyTracker
from x402_mint.models.config import MinterConfig
from x402_mint.models.records import PaymentClaim, PaymentOutcome
from x402_mint.payments.verifier import PaymentVerifier
from x402_mint.storage.memory import MemoryProcessedStore
from x402_mint.storage.sqlite import SQLiteProcessedStore
from x402_mint.web.app import create_app

log = logging.getLogger(__name__)


class MintService:
    """Owns one signing identity and everything that mints with it.

    ``ledger`` and ``store`` may be injected; otherwise a Web3LedgerClient
    and a store chosen by ``db_path`` are built from the configuration.
    """

    def __init__(
        self,
        cfg: MinterConfig,
        ledger: LedgerClient | None = None,
        store: ProcessedPaymentStore | None = None,
    ) -> None:
        self.cfg = cfg

        if ledger is None:
            ledger = Web3LedgerClient(
                rpc_url=cfg.chain.rpc_url,
                nft_contract_address=cfg.chain.nft_contract_address,
                private_key=cfg.chain.owner_private_key,
                chain_id=cfg.chain.chain_id,
                gas_limit=cfg.chain.mint_gas_limit,
                request_timeout=cfg.chain.rpc_timeout,
            )
        if store is None:
            store = SQLiteProcessedStore(cfg.db_path) if cfg.db_path else MemoryProcessedStore()

        self.ledger = ledger
        self.store = store
        self.verifier = PaymentVerifier(
            payment_token=cfg.chain.payment_token_address,
            treasury=cfg.chain.treasury_address,
            price=cfg.x402.price,
        )
        self.tracker = IdempotencyTracker(store)
        self.queue = MintSubmissionQueue(
            ledger,
            submit_timeout=cfg.chain.rpc_timeout,
            confirmation_timeout=cfg.chain.confirmation_timeout,
        )
        self.orchestrator = MintOrchestrator(
            ledger=ledger,
            verifier=self.verifier,
            tracker=self.tracker,
            queue=self.queue,
            rpc_timeout=cfg.chain.rpc_timeout,
        )

    async def start(self) -> None:
        log.info("Starting x402_mint service")
        log.info("  Signer:   %s", self.ledger.signer_address)
        log.info("  NFT:      %s", self.cfg.chain.nft_contract_address)
        log.info("  Token:    %s", self.cfg.chain.payment_token_address)
        log.info("  Treasury: %s", self.cfg.chain.treasury_address)
        log.info("  Price:    %d", self.cfg.x402.price)
        log.info("  Storage:  %s", self.cfg.db_path or "(memory)")
        await self.store.initialize()
        self.queue.start()

    async def close(self) -> None:
        await self.queue.close()
        await self.store.close()
        close_ledger = getattr(self.ledger, "close", None)
        if close_ledger is not None:
            await close_ledger()
        log.info("Service shut down cleanly")

    async def process_payment(self, tx_hash: object) -> PaymentOutcome:
        """Entry point for the handler layer."""
        return await self.orchestrator.process_payment(PaymentClaim(tx_hash=tx_hash))  # type: ignore[arg-type]

    async def owner_status(self) -> tuple[str, str]:
        """On-chain owner of the NFT contract and our signer address."""
        owner = await asyncio.wait_for(self.ledger.get_contract_owner(), self.cfg.chain.rpc_timeout)
        return owner, self.ledger.signer_address


async def run_service(cfg: MinterConfig) -> None:
    """Entry point for serving the HTTP surface until SIGINT/SIGTERM."""
    service = MintService(cfg)
    await service.start()

    runner = web.AppRunner(create_app(service))
    await runner.setup()
    site = web.TCPSite(runner, cfg.server.host, cfg.server.port)
    await site.start()
    log.info("Listening on http://%s:%d", cfg.server.host, cfg.server.port)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        await stop.wait()
    finally:
        log.info("Stop requested")
        await runner.cleanup()
        await service.close()
