"""Payment verification."""

from x402_mint.payments.verifier import PaymentVerifier, decode_transfer

__all__ = ["PaymentVerifier", "decode_transfer"]
