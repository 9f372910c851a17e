"""Web3 ledger client - receipt reads, owner lookup and signed mint submission."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, TransactionNotFound

from x402_mint.errors import LedgerUnavailable, ReceiptNotFound, SubmissionFailed
from x402_mint.evm.abi import NFT_ABI
from x402_mint.models.ledger import RawEvent, ReceiptStatus, TransactionReceipt
from x402_mint.models.records import MintRequest, MintResult, PendingMint

log = logging.getLogger(__name__)

# Substrings of node error messages worth telling apart in logs
_KNOWN_ERRORS = {
    "nonce too low": "nonce_too_low",
    "replacement transaction underpriced": "replacement_underpriced",
    "already known": "already_known",
    "insufficient funds": "insufficient_funds",
    "execution reverted": "execution_reverted",
    "ownable": "not_owner",
}


def _classify_error(exc: Exception) -> str:
    """Map a node/contract error onto a short classification."""
    msg = str(exc).lower()
    for needle, kind in _KNOWN_ERRORS.items():
        if needle in msg:
            return kind
    return "unknown"


def _hex(value: Any) -> str:
    """Normalise HexBytes/bytes/str into a lowercase 0x-prefixed string."""
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else f"0x{value.lower()}"
    return Web3.to_hex(value)


def receipt_from_web3(tx_hash: str, raw: Mapping[str, Any]) -> TransactionReceipt:
    """Convert a web3 receipt (AttributeDict) into a TransactionReceipt."""
    status = ReceiptStatus.SUCCESS if int(raw.get("status", 0)) == 1 else ReceiptStatus.FAILURE
    events = tuple(
        RawEvent(
            emitting_contract=str(entry["address"]),
            topics=tuple(_hex(t) for t in entry.get("topics", ())),
            data=_hex(entry.get("data", "0x")),
        )
        for entry in raw.get("logs", ())
    )
    return TransactionReceipt(tx_hash=tx_hash, status=status, events=events)


class Web3LedgerClient:
    """LedgerClient over an EVM JSON-RPC endpoint.

    Reads go through ``AsyncWeb3``; mint calls are built against the NFT
    contract, signed locally with the owner key and broadcast raw. The
    nonce comes from the account's pending transaction count, so callers
    must serialize ``submit_mint`` (see MintSubmissionQueue).
    """

    def __init__(
        self,
        rpc_url: str,
        nft_contract_address: str,
        private_key: str,
        chain_id: int,
        gas_limit: int = 300_000,
        request_timeout: int = 30,
    ) -> None:
        self._w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout)},
            )
        )
        self._account: LocalAccount = Account.from_key(private_key)
        self._nft = self._w3.eth.contract(
            address=to_checksum_address(nft_contract_address),
            abi=NFT_ABI,
        )
        self._chain_id = chain_id
        self._gas_limit = gas_limit

    @property
    def signer_address(self) -> str:
        return self._account.address

    async def close(self) -> None:
        """Close the provider's HTTP session."""
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt:
        try:
            raw = await self._w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            raise ReceiptNotFound(tx_hash) from None
        except Exception as exc:
            log.warning("get_transaction_receipt(%s) failed: %s", tx_hash[:18], exc)
            raise LedgerUnavailable("get_receipt", str(exc)) from exc
        if raw is None:
            raise ReceiptNotFound(tx_hash)
        return receipt_from_web3(tx_hash, raw)

    async def get_contract_owner(self) -> str:
        try:
            owner = await self._nft.functions.owner().call()
        except Exception as exc:
            log.warning("owner() call failed: %s", exc)
            raise LedgerUnavailable("get_contract_owner", str(exc)) from exc
        return to_checksum_address(owner)

    async def submit_mint(self, request: MintRequest) -> PendingMint:
        """Build, sign and broadcast mintAfterPayment(payer, quantity)."""
        payer = to_checksum_address(request.payer)
        log.info("Submitting mintAfterPayment(%s, %d)", payer, request.quantity)

        try:
            nonce = await self._w3.eth.get_transaction_count(self.signer_address, "pending")
            tx = await self._nft.functions.mintAfterPayment(payer, request.quantity).build_transaction(
                {
                    "from": self.signer_address,
                    "nonce": nonce,
                    "gas": self._gas_limit,
                    "chainId": self._chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            sent = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            error_type = _classify_error(exc)
            log.error("mintAfterPayment submission rejected: %s (%s)", error_type, exc)
            raise SubmissionFailed("rejected", error_type) from exc

        mint_tx_hash = _hex(sent)
        log.info("mintAfterPayment broadcast (nonce=%d, tx=%s)", nonce, mint_tx_hash[:18])
        return PendingMint(tx_hash=mint_tx_hash, recipient=payer, nonce=nonce)

    async def await_confirmation(self, pending: PendingMint, timeout: float) -> MintResult:
        try:
            raw = await self._w3.eth.wait_for_transaction_receipt(pending.tx_hash, timeout=timeout)
        except TimeExhausted as exc:
            log.error("Mint %s not confirmed after %ss", pending.tx_hash[:18], timeout)
            raise SubmissionFailed("timeout", f"not confirmed after {timeout}s", pending.tx_hash) from exc
        except Exception as exc:
            log.error("Waiting for mint %s failed: %s", pending.tx_hash[:18], exc)
            raise SubmissionFailed("timeout", str(exc), pending.tx_hash) from exc

        if int(raw.get("status", 0)) != 1:
            log.error("Mint %s reverted", pending.tx_hash[:18])
            raise SubmissionFailed("reverted", "mint transaction reverted", pending.tx_hash)

        return MintResult(recipient=pending.recipient, mint_tx_hash=pending.tx_hash)
