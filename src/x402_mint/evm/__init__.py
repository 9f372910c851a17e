"""EVM ledger integration components."""

from x402_mint.evm.client import Web3LedgerClient, receipt_from_web3

__all__ = ["Web3LedgerClient", "receipt_from_web3"]
