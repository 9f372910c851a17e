"""Payment verifier - derives payer and amount paid from a transaction receipt."""

from __future__ import annotations

import logging

from eth_utils import decode_hex, to_checksum_address

from x402_mint.errors import InsufficientAmount, NoQualifyingPayment, TransactionFailed
from x402_mint.evm.abi import TRANSFER_TOPIC
from x402_mint.models.ledger import (
    DecodedEvent,
    DecodeFailure,
    RawEvent,
    ReceiptStatus,
    TransactionReceipt,
    TransferEvent,
)
from x402_mint.models.records import PaymentRecord

log = logging.getLogger(__name__)

_WORD_HEX_LEN = 66  # "0x" + 32 bytes


def _topic_address(topic: str) -> str:
    """The address packed into the low 20 bytes of an indexed topic."""
    if len(topic) != _WORD_HEX_LEN:
        raise ValueError(f"topic is not a 32-byte word: {topic!r}")
    if topic[2:26].strip("0"):
        raise ValueError(f"topic has non-zero bytes above the address: {topic!r}")
    return to_checksum_address("0x" + topic[-40:])


def decode_transfer(event: RawEvent) -> DecodedEvent:
    """Decode a RawEvent as an ERC-20 Transfer, or say why it isn't one."""
    if len(event.topics) != 3:
        return DecodeFailure(f"expected 3 topics, got {len(event.topics)}")
    if event.topics[0].lower() != TRANSFER_TOPIC:
        return DecodeFailure("not a Transfer event")
    try:
        sender = _topic_address(event.topics[1])
        recipient = _topic_address(event.topics[2])
        data = decode_hex(event.data)
    except ValueError as exc:
        return DecodeFailure(str(exc))
    if len(data) != 32:
        return DecodeFailure(f"expected 32 bytes of data, got {len(data)}")
    return TransferEvent(
        sender=sender,
        recipient=recipient,
        value=int.from_bytes(data, "big"),
    )


class PaymentVerifier:
    """Decides whether a receipt pays the treasury at least the price.

    Pure: no network access and no state beyond the configuration, so the
    same receipt always yields the same PaymentRecord or the same rejection.

    Policy on multi-sender receipts: the first qualifying transfer's sender
    is the payer; later senders' transfers still count towards the amount.
    """

    def __init__(self, payment_token: str, treasury: str, price: int) -> None:
        self._token = to_checksum_address(payment_token)
        self._treasury = to_checksum_address(treasury)
        self._price = price

    @property
    def price(self) -> int:
        return self._price

    def qualifying_transfers(self, receipt: TransactionReceipt) -> list[TransferEvent]:
        """Transfers of the payment token to the treasury, in log order."""
        transfers: list[TransferEvent] = []
        for event in receipt.events:
            if event.emitting_contract.lower() != self._token.lower():
                continue
            decoded = decode_transfer(event)
            if isinstance(decoded, DecodeFailure):
                log.debug("Discarding token log in %s: %s", receipt.tx_hash[:18], decoded.reason)
                continue
            if decoded.recipient == self._treasury:
                transfers.append(decoded)
        return transfers

    def verify(self, receipt: TransactionReceipt) -> PaymentRecord:
        """Return the payer and amount, or raise a PaymentRejected subclass."""
        if receipt.status is not ReceiptStatus.SUCCESS:
            raise TransactionFailed(receipt.tx_hash)

        transfers = self.qualifying_transfers(receipt)
        if not transfers:
            raise NoQualifyingPayment(details={"txHash": receipt.tx_hash})

        payer = transfers[0].sender
        paid = sum(t.value for t in transfers)
        if paid < self._price:
            raise InsufficientAmount(paid=paid, required=self._price)

        senders = {t.sender for t in transfers}
        if len(senders) > 1:
            log.warning(
                "Payment %s has %d distinct senders; crediting first sender %s",
                receipt.tx_hash[:18], len(senders), payer,
            )
        return PaymentRecord(payer=payer, amount_paid=paid)
