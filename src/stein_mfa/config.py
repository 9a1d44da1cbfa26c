"""
Configuration defaults for one-time password secrets.

Defaults follow RFC 4226 / RFC 6238 and the Google Authenticator key URI
format (SHA1, 6 digits, 30 second period). Every value can be overridden per
call with keyword options; there is no global mutable configuration.
"""

from typing import Any, Dict

from .errors import InvalidArgument


# OTP configuration (RFC 6238 defaults)
OTP_DIGITS = 6              # Number of digits in a code
OTP_PERIOD = 30             # TOTP time step in seconds
OTP_SECRET_BITS = 160       # Generated key length (160 bits for SHA-1)
OTP_ALGORITHM = 'SHA1'      # HMAC hash algorithm
OTP_INITIAL_COUNTER = 0     # HOTP starting counter
OTP_TIME_TOLERANCE = 0      # Adjacent time steps accepted on validation

# Interoperability limits
MIN_SECRET_BITS = 128       # Keys must carry at least this many bits
SUPPORTED_DIGITS = (6, 8)

OTP_TYPES = ('hotp', 'totp')

# Options shared by both secret types
OTP_CONFIG: Dict[str, Any] = {
    'issuer': None,
    'bits': OTP_SECRET_BITS,
    'algorithm': OTP_ALGORITHM,
    'digits': OTP_DIGITS,
}

# Options that only make sense for one type
TYPE_OPTIONS: Dict[str, Dict[str, Any]] = {
    'hotp': {'initial_counter': OTP_INITIAL_COUNTER},
    'totp': {'period': OTP_PERIOD},
}


def resolve_options(otp_type: str, **options) -> Dict[str, Any]:
    """
    Merge caller options over the defaults for one secret type.

    Args:
        otp_type: 'hotp' or 'totp'
        **options: Overrides (issuer, bits, algorithm, digits, period,
            initial_counter)

    Returns:
        Complete option dict for the type

    Raises:
        InvalidArgument: Unknown type, unknown option, or an option that
            belongs to the other type (e.g. period for HOTP)
    """
    if otp_type not in TYPE_OPTIONS:
        raise InvalidArgument(f"Unknown OTP type: {otp_type!r}")

    config = OTP_CONFIG.copy()
    config.update(TYPE_OPTIONS[otp_type])

    unknown = sorted(set(options) - set(config))
    if unknown:
        raise InvalidArgument(
            f"Unsupported {otp_type.upper()} option(s): {', '.join(unknown)}"
        )

    config.update(options)
    return config
