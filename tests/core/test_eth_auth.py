from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import InvalidSignature, MalformedMessage
from app.core.eth_auth import (
    NONCE_ALPHABET,
    SiweVerifier,
    generate_nonce,
    is_valid_address,
    normalize_address,
    parse_message,
)

DOMAIN = "localhost:5173"
ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

FULL_MESSAGE = (
    "example.com wants you to sign in with your Ethereum account:\n"
    f"{ADDRESS}\n"
    "\n"
    "Sign in to SecureTickets\n"
    "\n"
    "URI: https://example.com/login\n"
    "Version: 1\n"
    "Chain ID: 11155111\n"
    "Nonce: kB3xQ9mZr2LtW7vA\n"
    "Issued At: 2024-01-01T12:00:00.000Z\n"
    "Expiration Time: 2024-01-02T12:00:00.000Z\n"
    "Request ID: req-42\n"
    "Resources:\n"
    "- https://example.com/tickets"
)


def _iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


class TestParseMessage:
    """Test cases for EIP-4361 message parsing"""

    def test_parse_all_fields(self):
        message = parse_message(FULL_MESSAGE)

        assert message.domain == "example.com"
        assert message.address == ADDRESS
        assert message.statement == "Sign in to SecureTickets"
        assert message.uri == "https://example.com/login"
        assert message.chain_id == 11155111
        assert message.nonce == "kB3xQ9mZr2LtW7vA"
        assert message.request_id == "req-42"
        assert message.resources == ["https://example.com/tickets"]

    def test_prepare_reproduces_text(self, wallet, siwe_message):
        text = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")

        assert parse_message(text).prepare_message() == text

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "hello world",
            FULL_MESSAGE.replace("wants you to sign in", "wants you to log in"),
            FULL_MESSAGE.replace(ADDRESS, "0x1234"),
            FULL_MESSAGE.replace(ADDRESS, ADDRESS.lower()),  # not EIP-55
            FULL_MESSAGE.replace("Chain ID: 11155111", "Chain ID: mainnet"),
            FULL_MESSAGE.replace("Nonce: kB3xQ9mZr2LtW7vA", "Nonce: short"),
            FULL_MESSAGE.replace("Issued At: 2024-01-01T12:00:00.000Z", "Issued At: yesterday"),
            FULL_MESSAGE.replace("Nonce: kB3xQ9mZr2LtW7vA\n", ""),
            FULL_MESSAGE.split("\nURI:")[0],
        ],
    )
    def test_parse_rejects_malformed(self, text: str):
        with pytest.raises(MalformedMessage):
            parse_message(text)

    def test_parse_rejects_non_string(self):
        with pytest.raises(MalformedMessage):
            parse_message(None)


class TestAddressValidation:
    def test_checksum_and_single_case_addresses(self):
        assert is_valid_address(ADDRESS)
        assert is_valid_address(ADDRESS.lower())
        assert is_valid_address("0x" + ADDRESS[2:].upper())

    def test_invalid_addresses(self):
        assert not is_valid_address("")
        assert not is_valid_address(None)
        assert not is_valid_address(ADDRESS[2:])
        assert not is_valid_address(ADDRESS + "00")
        assert not is_valid_address("0x" + "g" * 40)
        assert not is_valid_address(ADDRESS.replace("c", "C", 1))  # bad checksum


class TestGenerateNonce:
    def test_default_length_and_alphabet(self):
        nonce = generate_nonce()

        assert len(nonce) == 16
        assert set(nonce) <= set(NONCE_ALPHABET)

    def test_custom_length(self):
        assert len(generate_nonce(32)) == 32

    def test_too_short_length_falls_back(self):
        assert len(generate_nonce(4)) == 16

    def test_nonces_are_unique(self):
        assert len({generate_nonce() for _ in range(200)}) == 200


class TestNormalizeAddress:
    def test_lowercases_and_strips(self, wallet):
        assert normalize_address(f"  {wallet.address} ") == wallet.address.lower()

    @pytest.mark.parametrize("value", ["", None, "0x123", "wallet", "0x" + "z" * 40])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            normalize_address(value)


class TestSiweVerifier:
    def test_verify_success(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")

        verified = SiweVerifier(expected_domain=DOMAIN).verify(message, sign_message(wallet, message))

        assert verified.address == wallet.address.lower()
        assert verified.nonce == "kB3xQ9mZr2LtW7vA"
        assert verified.message.chain_id == 1

    def test_verify_lowercase_message_address_is_malformed(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA").replace(wallet.address, wallet.address.lower())

        with pytest.raises(MalformedMessage):
            SiweVerifier().verify(message, sign_message(wallet, message))

    def test_verify_signature_without_prefix(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")

        verified = SiweVerifier().verify(message, sign_message(wallet, message)[2:])

        assert verified.address == wallet.address.lower()

    @pytest.mark.parametrize("signature", ["", "0x", "0xzz", None, "0x" + "00" * 64, "0x" + "00" * 65])
    def test_verify_bad_signatures(self, wallet, siwe_message, signature):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")

        with pytest.raises(InvalidSignature):
            SiweVerifier().verify(message, signature)

    def test_verify_other_signer(self, wallet, other_wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")

        with pytest.raises(InvalidSignature):
            SiweVerifier().verify(message, sign_message(other_wallet, message))

    def test_verify_tampered_message(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA")
        signature = sign_message(wallet, message)

        with pytest.raises(InvalidSignature):
            SiweVerifier().verify(message.replace("kB3xQ9mZr2LtW7vA", "kB3xQ9mZr2LtW7vB"), signature)

    def test_verify_malformed_before_signature(self, wallet, sign_message):
        with pytest.raises(MalformedMessage):
            SiweVerifier().verify("not a sign-in message", sign_message(wallet, "not a sign-in message"))

    def test_verify_domain_mismatch(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA", domain="phishing.example")

        with pytest.raises(InvalidSignature):
            SiweVerifier(expected_domain=DOMAIN).verify(message, sign_message(wallet, message))

    def test_verify_domain_unchecked_when_not_configured(self, wallet, siwe_message, sign_message):
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA", domain="anywhere.example")

        assert SiweVerifier().verify(message, sign_message(wallet, message)).address == wallet.address.lower()

    def test_verify_expired_message(self, wallet, siwe_message, sign_message):
        now = datetime.now(timezone.utc)
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA", expiration_time=_iso(now - timedelta(minutes=1)))

        with pytest.raises(InvalidSignature):
            SiweVerifier().verify(message, sign_message(wallet, message), now=now)

    def test_verify_not_yet_valid_message(self, wallet, siwe_message, sign_message):
        now = datetime.now(timezone.utc)
        message = siwe_message(wallet.address, "kB3xQ9mZr2LtW7vA", not_before=_iso(now + timedelta(minutes=5)))

        with pytest.raises(InvalidSignature):
            SiweVerifier().verify(message, sign_message(wallet, message), now=now)

    def test_verify_inside_validity_window(self, wallet, siwe_message, sign_message):
        now = datetime.now(timezone.utc)
        message = siwe_message(
            wallet.address,
            "kB3xQ9mZr2LtW7vA",
            not_before=_iso(now - timedelta(minutes=5)),
            expiration_time=_iso(now + timedelta(minutes=5)),
        )

        verified = SiweVerifier().verify(message, sign_message(wallet, message), now=now)

        assert verified.nonce == "kB3xQ9mZr2LtW7vA"
