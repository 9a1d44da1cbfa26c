# stein_mfa
"""
One-time password second factor (HOTP RFC 4226 / TOTP RFC 6238):
- Secret creation - new_totp / new_hotp
- Token generation and validation with drift tolerance - generate / validate
- Google Authenticator enrollment URIs - enrollment_url
- MFA service with QR enrollment and audit events - mfa.py

The engine is stateless: callers own storage of secrets, and must persist
the advanced secret returned by every HOTP generation.
"""

from .errors import (
    OTPError,
    InvalidSecretLength,
    MalformedSecret,
    IncompleteSecretState,
    InvalidArgument,
    SealingError,
)

from .core_crypto.otp_engine import Algorithm

from .core_crypto.random_secret import RandomSecretGenerator

from .one_time_password import (
    Secret,
    HotpSecret,
    TotpSecret,
    Token,
    new_hotp,
    new_totp,
    generate,
    validate,
    enrollment_url,
)

from .core_crypto.secret_sealer import SecretSealer

from .mfa import (
    MFAService,
    enrollment_svg_string_for_secret,
    enrollment_svg_img_element_for_secret,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    'OTPError',
    'InvalidSecretLength',
    'MalformedSecret',
    'IncompleteSecretState',
    'InvalidArgument',
    'SealingError',
    # Core
    'Algorithm',
    'RandomSecretGenerator',
    # One-time passwords
    'Secret',
    'HotpSecret',
    'TotpSecret',
    'Token',
    'new_hotp',
    'new_totp',
    'generate',
    'validate',
    'enrollment_url',
    # Service
    'SecretSealer',
    'MFAService',
    'enrollment_svg_string_for_secret',
    'enrollment_svg_img_element_for_secret',
]
