"""
HMAC-based One-Time Password engine

Implements RFC 4226 (HOTP) and RFC 6238 (TOTP) code computation.

Steps:
1. Pack the counter (or floor(time / period) for TOTP) as 8-byte big-endian
2. HMAC the packed counter with the key using SHA-1, SHA-256 or SHA-512
3. Dynamic truncation: the low nibble of the last digest byte selects an
   offset, 4 bytes are read there with the top bit cleared
4. Reduce modulo 10^digits and left-pad with zeros

All functions here are pure; only the hash function changes between
algorithms.
"""

import hashlib
import hmac
import struct
from enum import Enum

from ..config import OTP_DIGITS, OTP_PERIOD, SUPPORTED_DIGITS
from ..errors import InvalidArgument


MAX_COUNTER = 2 ** 64 - 1   # Counter must fit in 8 bytes


class Algorithm(Enum):
    """HMAC hash algorithms accepted by authenticator apps."""

    SHA1 = 'SHA1'
    SHA256 = 'SHA256'
    SHA512 = 'SHA512'

    @property
    def hash_function(self):
        """hashlib constructor for this algorithm."""
        return {
            Algorithm.SHA1: hashlib.sha1,
            Algorithm.SHA256: hashlib.sha256,
            Algorithm.SHA512: hashlib.sha512,
        }[self]

    @classmethod
    def parse(cls, value) -> 'Algorithm':
        """
        Coerce an Algorithm or a name such as 'sha256' / 'SHA-256'.

        Raises:
            InvalidArgument: For anything that is not SHA1, SHA256 or SHA512
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper().replace('-', '')
            if name in cls.__members__:
                return cls[name]
        raise InvalidArgument(
            f"Invalid algorithm {value!r}, must be SHA1, SHA256 or SHA512"
        )


def _check_digits(digits: int) -> None:
    if digits not in SUPPORTED_DIGITS:
        raise InvalidArgument(f"digits must be one of {SUPPORTED_DIGITS}, got {digits!r}")


def int_to_bytestring(counter: int) -> bytes:
    """
    Pack a counter as the 8-byte big-endian message fed to the HMAC.

    Raises:
        InvalidArgument: If the counter is negative or does not fit in 8 bytes
    """
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise InvalidArgument(f"counter must be an integer, got {counter!r}")
    if counter < 0 or counter > MAX_COUNTER:
        raise InvalidArgument(f"counter must be in [0, 2^64), got {counter}")
    return struct.pack('>Q', counter)


def dynamic_truncate(hmac_hash: bytes) -> int:
    """
    RFC 4226 dynamic truncation of an HMAC digest to a 31-bit integer.

    Args:
        hmac_hash: Full HMAC digest (20, 32 or 64 bytes)

    Returns:
        Unsigned 31-bit integer P
    """
    # Get offset from last 4 bits of hash
    offset = hmac_hash[-1] & 0x0F

    # Extract 4 bytes starting at offset
    truncated = struct.unpack('>I', hmac_hash[offset:offset + 4])[0]

    # Clear the most significant bit (avoid signed/unsigned ambiguity)
    return truncated & 0x7FFFFFFF


def hotp_code(key: bytes, counter: int,
              algorithm: Algorithm = Algorithm.SHA1,
              digits: int = OTP_DIGITS) -> str:
    """
    Generate HOTP (HMAC-based OTP) value.

    Implements RFC 4226.

    Args:
        key: Raw shared secret bytes
        counter: Counter value (8-byte unsigned integer)
        algorithm: Hash algorithm (SHA1, SHA256, SHA512)
        digits: Number of digits in the code (6 or 8)

    Returns:
        Code string of exactly `digits` characters
    """
    algorithm = Algorithm.parse(algorithm)
    _check_digits(digits)

    hmac_hash = hmac.new(bytes(key), int_to_bytestring(counter),
                         algorithm.hash_function).digest()
    code = dynamic_truncate(hmac_hash) % (10 ** digits)

    # Pad with leading zeros if needed
    return str(code).zfill(digits)


def time_counter(unix_time: float, period: int = OTP_PERIOD) -> int:
    """
    Get the TOTP time step for a timestamp.

    Returns:
        floor(unix_time / period)

    Raises:
        InvalidArgument: If period is not a positive integer
    """
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidArgument(f"period must be a positive integer, got {period!r}")
    return int(unix_time // period)


def totp_code(key: bytes, unix_time: float,
              period: int = OTP_PERIOD,
              algorithm: Algorithm = Algorithm.SHA1,
              digits: int = OTP_DIGITS) -> str:
    """
    Generate TOTP (Time-based OTP) value.

    Implements RFC 6238 with T0 = 0.

    Args:
        key: Raw shared secret bytes
        unix_time: Unix timestamp in seconds (float allowed)
        period: Time step in seconds
        algorithm: Hash algorithm
        digits: Number of digits in the code

    Returns:
        TOTP code string
    """
    return hotp_code(key, time_counter(unix_time, period), algorithm, digits)
