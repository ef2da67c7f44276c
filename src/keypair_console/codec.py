"""Base58 secret encoding and address validation helpers."""

from __future__ import annotations

from base58 import b58decode, b58encode
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config import SECRET_KEY_LENGTH
from .errors import ValidationError


def encode_secret(secret: bytes) -> str:
    """Return the base58 text for a 64-byte secret key."""

    return b58encode(bytes(secret)).decode("utf-8")


def decode_secret(text: str) -> bytes:
    """Decode base58 text into a 64-byte secret key.

    Raises ``ValidationError`` for non-base58 input or any other length.
    """

    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Secret key is empty")
    try:
        secret = b58decode(text.strip())
    except ValueError as exc:
        raise ValidationError("Secret key is not valid base58", exc) from exc
    if len(secret) != SECRET_KEY_LENGTH:
        raise ValidationError(
            f"Secret key must decode to {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
        )
    return secret


def keypair_from_secret(secret: bytes) -> Keypair:
    if len(secret) != SECRET_KEY_LENGTH:
        raise ValidationError(f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}")
    # The trailing 32 bytes are the stored public half; re-derive from the seed to check them.
    keypair = Keypair.from_seed(bytes(secret[:32]))
    if bytes(keypair.pubkey()) != bytes(secret[32:]):
        raise ValidationError("Secret key public half does not match its private half")
    return keypair


def derive_keypair(secret: bytes) -> tuple[str, bytes]:
    """Return ``(public_key_text, secret)`` for a decoded secret.

    The public half embedded in the secret must match the one derived from
    its private half.
    """

    keypair = keypair_from_secret(secret)
    return str(keypair.pubkey()), bytes(secret)


def generate_keypair() -> tuple[str, str]:
    """Create a fresh keypair and return ``(public_key_text, secret_text)``."""

    keypair = Keypair()
    return str(keypair.pubkey()), encode_secret(bytes(keypair))


def parse_address(text: str) -> Pubkey:
    try:
        return Pubkey.from_string(text.strip())
    except (ValueError, AttributeError) as exc:
        raise ValidationError(f"Invalid address format: {text!r}", exc) from exc


def is_address_syntax(text: str) -> bool:
    """Return True when the text decodes to a 32-byte base58 address."""

    try:
        parse_address(text)
    except ValidationError:
        return False
    return True


def is_valid_address(text: str) -> bool:
    """Return True for a well-formed address that lies on the ed25519 curve."""

    try:
        pubkey = parse_address(text)
    except ValidationError:
        return False
    return pubkey.is_on_curve()
