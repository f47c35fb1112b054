"""
Ethereum Wallet Authentication Utilities

This module handles the Ethereum-specific cryptographic operations for wallet authentication.
It implements Sign-In with Ethereum (EIP-4361) verification over EIP-191 personal_sign signatures.

Authentication Flow:
1. Backend generates a random nonce -> generate_nonce()
2. Frontend builds an EIP-4361 message containing the nonce and signs it with the wallet
3. Frontend sends: message, signature
4. Backend verifies: SiweVerifier.verify()
   - Parses the message with the siwe library
   - Recovers the signer address from the signature
   - Checks signer, domain and validity window against the message
   - Returns the lowercase address and the nonce for the caller to match against storage

The signature recovery uses:
- secp256k1 public key recovery (Ethereum's signature algorithm)
- eth_account for EIP-191 message encoding and address recovery (via siwe)
"""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import siwe
from eth_utils import is_checksum_address, is_hex_address
from siwe import SiweMessage

from app.core.errors import InvalidSignature, MalformedMessage
from app.core.logger import get_logger

logger = get_logger(__name__)

NONCE_ALPHABET = string.ascii_letters + string.digits
NONCE_LENGTH = 16  # 16 alphanumeric chars, ~95 bits
SIGNATURE_NUM_BYTES = 65  # r (32) + s (32) + v (1)


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """
    Generate a cryptographically secure random alphanumeric nonce.

    The nonce is embedded in the sign-in message, so it is restricted to the
    alphanumeric alphabet EIP-4361 allows.

    Args:
        length: Number of characters (values below 8 fall back to the default)

    Returns:
        Random string such as "kB3xQ9mZr2LtW7vA"
    """
    if length < 8:
        length = NONCE_LENGTH
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


def is_valid_address(address: str) -> bool:
    """
    Check a 0x-prefixed 20-byte hex address.

    All-lowercase and all-uppercase forms are accepted as is; mixed case must
    carry a valid EIP-55 checksum.
    """
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    if not is_hex_address(address):
        return False
    body = address[2:]
    if body.lower() == body or body.upper() == body:
        return True
    return is_checksum_address(address)


def normalize_address(address: str) -> str:
    """
    Canonical form of a wallet address: stripped and lowercased.

    Raises:
        ValueError: If the value is not a 0x-prefixed 20-byte hex address
    """
    value = (address or "").strip()
    if not is_valid_address(value):
        raise ValueError(f"Invalid wallet address: {address!r}")
    return value.lower()


def parse_message(text: str) -> SiweMessage:
    """
    Parse EIP-4361 message text.

    Raises:
        MalformedMessage: If the text is not a well-formed sign-in message
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedMessage()
    try:
        return SiweMessage.from_message(message=text)
    except ValueError as exc:
        logger.debug("Sign-in message rejected: %s", exc)
        raise MalformedMessage()


def _check_signature_shape(signature: str) -> None:
    """Helper: Reject anything that is not a 65-byte hex string, with or without 0x prefix."""
    value = signature.strip() if isinstance(signature, str) else ""
    if value[:2].lower() == "0x":
        value = value[2:]
    try:
        signature_bytes = bytes.fromhex(value)
    except ValueError:
        raise InvalidSignature()
    if len(signature_bytes) != SIGNATURE_NUM_BYTES:
        raise InvalidSignature()


@dataclass
class VerifiedMessage:
    address: str
    nonce: str
    message: SiweMessage


class SiweVerifier:
    """
    Stateless sign-in message verifier.

    Never touches storage: the nonce it returns still has to be matched
    against the identity record by the caller.
    """

    def __init__(self, expected_domain: Optional[str] = None):
        self.expected_domain = expected_domain or None

    def verify(self, message: str, signature: str, now: Optional[datetime] = None) -> VerifiedMessage:
        """
        Verify a signed sign-in message.

        Args:
            message: EIP-4361 message text exactly as signed
            signature: 65-byte hex signature
            now: Reference time for the validity window (defaults to current UTC time)

        Returns:
            VerifiedMessage with the lowercase signer address and the message nonce

        Raises:
            MalformedMessage: If the message does not parse
            InvalidSignature: If recovery fails, the signer differs from the message
                address, the domain is unexpected, or the message is outside its
                validity window
        """
        parsed = parse_message(message)
        _check_signature_shape(signature)

        signature = signature.strip()
        if not signature.lower().startswith("0x"):
            signature = "0x" + signature

        try:
            parsed.verify(
                signature,
                domain=self.expected_domain,
                timestamp=now or datetime.now(timezone.utc),
            )
        except siwe.ExpiredMessage:
            raise InvalidSignature("Message expired")
        except siwe.DomainMismatch:
            logger.warning("Unexpected sign-in domain: %s", parsed.domain)
            raise InvalidSignature()
        except siwe.VerificationError as exc:
            logger.warning("Sign-in verification failed for %s: %s", parsed.address.lower(), exc.__class__.__name__)
            raise InvalidSignature()
        except Exception as exc:
            # eth-keys raises its own errors for unrecoverable r/s/v values
            logger.debug("Signature recovery failed: %s", exc)
            raise InvalidSignature()

        return VerifiedMessage(address=parsed.address.lower(), nonce=parsed.nonce, message=parsed)
