"""Ledger-side models: receipts and the events they carry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ReceiptStatus(str, Enum):
    """Finalized outcome of a transaction."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class RawEvent:
    """A log entry as emitted by a contract, not yet decoded."""

    emitting_contract: str  # 0x address
    topics: tuple[str, ...]  # 0x-prefixed 32-byte words
    data: str  # 0x-prefixed hex


@dataclass(frozen=True)
class TransactionReceipt:
    """Finalized outcome of a transaction and its emitted logs, in log order."""

    tx_hash: str
    status: ReceiptStatus
    events: tuple[RawEvent, ...] = ()


@dataclass(frozen=True)
class TransferEvent:
    """ERC-20 Transfer(address indexed from, address indexed to, uint256 value)."""

    sender: str  # checksummed
    recipient: str  # checksummed
    value: int


@dataclass(frozen=True)
class DecodeFailure:
    """A RawEvent that is not an ERC-20 transfer."""

    reason: str


DecodedEvent = Union[TransferEvent, DecodeFailure]
