"""
Code validation for HOTP and TOTP.

HOTP accepts only the immediate next counter (last_counter + 1); there is no
look-ahead resynchronization window. TOTP accepts the current time step and
up to `time_tolerance` steps on either side, nearest steps first.

Neither function mutates anything: replay protection (persisting the advanced
HOTP counter, remembering used TOTP steps) is left to the caller.
"""

import hmac
from typing import Iterator

from ..config import OTP_DIGITS, OTP_TIME_TOLERANCE
from ..core_crypto.otp_engine import Algorithm, hotp_code, time_counter
from ..errors import InvalidArgument


def normalize_code(code, digits: int) -> str:
    """
    Clean up user input; returns '' when it cannot possibly be a code.

    Spaces are removed ("123 456" is how many apps display codes). Anything
    other than exactly `digits` ASCII digits is rejected.
    """
    code = str(code).replace(' ', '').strip()
    if len(code) != digits or not (code.isascii() and code.isdigit()):
        return ''
    return code


def check_time_tolerance(time_tolerance: int) -> int:
    """
    Raises InvalidArgument unless time_tolerance is an integer >= 0.
    """
    if isinstance(time_tolerance, bool) or not isinstance(time_tolerance, int):
        raise InvalidArgument(f"time_tolerance must be an integer, got {time_tolerance!r}")
    if time_tolerance < 0:
        raise InvalidArgument(f"time_tolerance must be >= 0, got {time_tolerance}")
    return time_tolerance


def window_offsets(time_tolerance: int) -> Iterator[int]:
    """
    Yield 0, -1, +1, -2, +2, ... up to +/- time_tolerance.

    Raises:
        InvalidArgument: If time_tolerance is negative
    """
    check_time_tolerance(time_tolerance)

    yield 0
    for distance in range(1, time_tolerance + 1):
        yield -distance
        yield distance


def validate_hotp(code, key: bytes, last_counter: int,
                  algorithm: Algorithm = Algorithm.SHA1,
                  digits: int = OTP_DIGITS) -> bool:
    """
    Verify a HOTP code against the counter after `last_counter`.

    Args:
        code: Candidate code from the user
        key: Raw shared secret
        last_counter: Last counter the verifier has seen; -1 for none
        algorithm: Hash algorithm
        digits: Expected number of digits

    Returns:
        True iff code == HOTP(key, last_counter + 1)
    """
    code = normalize_code(code, digits)
    if not code:
        return False

    expected = hotp_code(key, last_counter + 1, algorithm, digits)

    # Use constant-time comparison
    return hmac.compare_digest(code, expected)


def validate_totp(code, key: bytes, period: int, algorithm: Algorithm,
                  digits: int, unix_time: float,
                  time_tolerance: int = OTP_TIME_TOLERANCE) -> bool:
    """
    Verify a TOTP code with drift tolerance.

    Checks the step containing `unix_time` and then the steps at distance
    1..time_tolerance, earlier step first. Steps before the epoch are
    skipped.

    Args:
        code: Candidate code from the user
        key: Raw shared secret
        period: Time step in seconds
        algorithm: Hash algorithm
        digits: Expected number of digits
        unix_time: Validation time (Unix seconds)
        time_tolerance: Number of time steps to check in each direction

    Returns:
        True if code matches any step in the window

    Raises:
        InvalidArgument: If time_tolerance is negative
    """
    check_time_tolerance(time_tolerance)
    current_counter = time_counter(unix_time, period)

    code = normalize_code(code, digits)
    if not code:
        return False

    for offset in window_offsets(time_tolerance):
        counter = current_counter + offset
        if counter < 0:
            continue
        expected = hotp_code(key, counter, algorithm, digits)
        if hmac.compare_digest(code, expected):
            return True

    return False
