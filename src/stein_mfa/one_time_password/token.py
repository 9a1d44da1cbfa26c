"""
Tokens: the literal one-time passwords generated from a secret.

A Token pairs the code with the secret to validate it against:
- HOTP: the secret with its counter already advanced; persist
  `token.secret` before generating again
- TOTP: the same secret, plus an optional default time tolerance
"""

import time
from dataclasses import dataclass
from typing import Optional, Union

from ..core_crypto.otp_engine import hotp_code, totp_code
from ..errors import InvalidArgument
from .secret import HotpSecret, Secret, TotpSecret
from .validator import check_time_tolerance, validate_hotp, validate_totp


@dataclass(frozen=True)
class Token:
    """
    A generated 6 (or 8) digit one-time password.

    Attributes:
        value: The code, e.g. "123456"
        secret: Secret to validate against (post-increment for HOTP)
        time_tolerance: Default TOTP tolerance used by validate()
    """
    value: str
    secret: Secret
    time_tolerance: Optional[int] = None

    def validate(self, time_tolerance: Optional[int] = None,
                 timestamp: Optional[float] = None) -> bool:
        """Validate this token against its embedded secret."""
        return validate(self, time_tolerance=time_tolerance, timestamp=timestamp)


def generate(secret: Secret, timestamp: Optional[float] = None) -> Token:
    """
    Generate a token from the given secret.

    For a time-based secret the returned token carries the same secret.
    For a counter-based secret it carries a new secret with the counter
    incremented; the input secret is left untouched.

    Args:
        secret: HotpSecret or TotpSecret
        timestamp: Unix time for TOTP (uses current time if None)

    Returns:
        Token

    Raises:
        IncompleteSecretState: If the secret lacks its counter / period
    """
    if isinstance(secret, HotpSecret):
        advanced = secret.advance()
        value = hotp_code(advanced.secret_value, advanced.counter,
                          advanced.algorithm, advanced.digits)
        return Token(value=value, secret=advanced)

    if isinstance(secret, TotpSecret):
        if timestamp is None:
            timestamp = time.time()
        value = totp_code(secret.secret_value, timestamp, secret.require_period(),
                          secret.algorithm, secret.digits)
        return Token(value=value, secret=secret)

    raise InvalidArgument(f"Cannot generate a token from {type(secret).__name__}")


def validate(token_or_code: Union[Token, str], secret: Optional[Secret] = None,
             time_tolerance: Optional[int] = None,
             timestamp: Optional[float] = None) -> bool:
    """
    Validate a token, or a raw code against a secret.

    For HOTP the code must match the secret's current counter, i.e. the
    counter after the last one the verifier saw. `time_tolerance` is an
    integer n >= 0 such that the previous n and next n TOTP codes validate
    as well as the current one, to absorb clock drift between phones and
    servers and slow typing. It is ignored for HOTP.

    Args:
        token_or_code: Token, or the code the user typed
        secret: Secret to check against (defaults to the token's secret)
        time_tolerance: TOTP window (defaults to the token's, else 0)
        timestamp: Validation time for TOTP (uses current time if None)

    Returns:
        True if the code is valid

    Raises:
        InvalidArgument: No secret given for a raw code, or a tolerance that is not an integer >= 0
        IncompleteSecretState: If the secret lacks its counter / period
    """
    if isinstance(token_or_code, Token):
        code = token_or_code.value
        secret = secret or token_or_code.secret
        if time_tolerance is None:
            time_tolerance = token_or_code.time_tolerance
    else:
        code = token_or_code
        if secret is None:
            raise InvalidArgument("A secret is required to validate a raw code")

    if time_tolerance is None:
        time_tolerance = 0
    check_time_tolerance(time_tolerance)

    if isinstance(secret, HotpSecret):
        return validate_hotp(code, secret.secret_value, secret.require_counter() - 1,
                             secret.algorithm, secret.digits)

    if isinstance(secret, TotpSecret):
        if timestamp is None:
            timestamp = time.time()
        return validate_totp(code, secret.secret_value, secret.require_period(),
                             secret.algorithm, secret.digits, timestamp, time_tolerance)

    raise InvalidArgument(f"Cannot validate against {type(secret).__name__}")
