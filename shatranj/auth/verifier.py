"""
Wallet signature verification (EIP-191 personal messages).
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from shatranj.auth.address import Address

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65  # r (32) + s (32) + v (1)
RECOVERY_IDS = frozenset({0, 1, 27, 28})


class SignatureVerifier:
    """
    Checks that a message was signed by the key behind an address.

    Pure and deterministic. Fails closed: anything that cannot be recovered counts as "not signed by this address".
    """

    def recover(self, message: str, signature: str) -> Optional[Address]:
        """Address of the key that produced `signature` over `message`, or None if the signature is unusable."""
        raw = self._signature_bytes(signature)
        if raw is None:
            return None
        try:
            recovered = Account.recover_message(encode_defunct(text=message), signature=raw)
        except Exception as error:
            logger.debug("Could not recover signer: %s: %s", type(error).__name__, error)
            return None
        return Address(recovered)

    def verify(self, message: str, signature: str, claimed_address: str | Address) -> bool:
        try:
            claimed = Address.parse(claimed_address)
        except (ValueError, AttributeError):
            logger.debug("Claimed address %r is not a wallet address", claimed_address)
            return False

        signer = self.recover(message, signature)
        if signer is None:
            return False
        if signer != claimed:
            logger.debug("Signature belongs to %s, not to %s", signer, claimed)
            return False
        return True

    # -- Internal helpers --
    def _signature_bytes(self, signature: str) -> Optional[bytes]:
        """
        Raw r || s || v, or None unless the signature has exactly that shape.

        eth-account also reads EIP-155 style recovery bytes (v >= 35) back to the same recovery bit,
        so only the plain personal-sign values are let through.
        """
        try:
            hex_digits = signature[2:] if signature[:2] in ("0x", "0X") else signature
            raw = bytes.fromhex(hex_digits)
        except (TypeError, ValueError):
            logger.debug("Signature %r is not hex", signature)
            return None
        if len(raw) != SIGNATURE_LENGTH:
            logger.debug("Signature has %d bytes, expected %d", len(raw), SIGNATURE_LENGTH)
            return None
        if raw[-1] not in RECOVERY_IDS:
            logger.debug("Signature has recovery byte %d", raw[-1])
            return None
        return raw
