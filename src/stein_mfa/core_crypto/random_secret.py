"""
Random Secret Generation

Produces cryptographically secure key material for HOTP/TOTP secrets and
converts it to and from the base32 text used in storage and otpauth:// URIs.

Notes:
- Randomness comes from the `secrets` module (the platform CSPRNG)
- Encoding is RFC 4648 base32 without padding, which is what
  authenticator apps expect
- Decoding accepts padded or unpadded text in any case
"""

import base64
import math
import secrets
from typing import Callable, Optional

from ..config import MIN_SECRET_BITS, OTP_SECRET_BITS
from ..errors import InvalidSecretLength, MalformedSecret


def generate_secret(bits: int = OTP_SECRET_BITS,
                    random_bytes: Optional[Callable[[int], bytes]] = None) -> bytes:
    """
    Generate a cryptographically secure random secret.

    Args:
        bits: Key length in bits, must be greater than 128 (default 160)
        random_bytes: Byte source, defaults to secrets.token_bytes

    Returns:
        ceil(bits / 8) random bytes

    Raises:
        InvalidSecretLength: If bits <= 128
    """
    if isinstance(bits, bool) or not isinstance(bits, int):
        raise InvalidSecretLength(f"Secret length must be an integer, got {bits!r}")
    if bits <= MIN_SECRET_BITS:
        raise InvalidSecretLength(
            f"Secrets must be longer than {MIN_SECRET_BITS} bits, got {bits}"
        )

    source = random_bytes or secrets.token_bytes
    return source(math.ceil(bits / 8))


def secret_to_base32(secret: bytes) -> str:
    """
    Encode secret as base32 string (for authenticator apps).

    Args:
        secret: Raw secret bytes

    Returns:
        Base32-encoded string (no padding)
    """
    return base64.b32encode(bytes(secret)).decode('ascii').rstrip('=')


def base32_to_secret(encoded: str) -> bytes:
    """
    Decode base32 secret string to bytes.

    Args:
        encoded: Base32-encoded string, padded or not

    Returns:
        Raw secret bytes

    Raises:
        MalformedSecret: On non-text input, characters outside the base32
            alphabet, or invalid padding / length
    """
    if not isinstance(encoded, str):
        raise MalformedSecret(f"Base32 secret must be text, got {type(encoded).__name__}")

    text = encoded.strip().upper()

    # Add padding if needed
    if '=' not in text:
        text += '=' * (-len(text) % 8)

    try:
        return base64.b32decode(text)
    except ValueError as error:
        # binascii.Error is a ValueError; so is non-ASCII input
        raise MalformedSecret("Secret is not valid base32") from error


class RandomSecretGenerator:
    """
    Secret generator with an injectable random source.

    Example:
        >>> generator = RandomSecretGenerator()
        >>> raw = generator.generate(160)
        >>> generator.decode(generator.encode(raw)) == raw
        True
    """

    def __init__(self, random_bytes: Optional[Callable[[int], bytes]] = None):
        self._random_bytes = random_bytes or secrets.token_bytes

    def generate(self, bits: int = OTP_SECRET_BITS) -> bytes:
        """Draw ceil(bits / 8) random bytes, bits must exceed 128."""
        return generate_secret(bits, self._random_bytes)

    @staticmethod
    def encode(secret: bytes) -> str:
        return secret_to_base32(secret)

    @staticmethod
    def decode(encoded: str) -> bytes:
        return base32_to_secret(encoded)

    def __repr__(self) -> str:
        return f"RandomSecretGenerator(source={getattr(self._random_bytes, '__name__', 'custom')})"
