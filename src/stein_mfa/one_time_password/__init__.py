# One-Time Password Module
"""
HOTP (RFC 4226) and TOTP (RFC 6238) secrets and tokens:
- Immutable secrets - secret.py
- Token generation and validation - token.py
- Code comparison with drift tolerance - validator.py
- otpauth:// enrollment URIs - enrollment.py
"""

from .secret import (
    Secret,
    HotpSecret,
    TotpSecret,
    new_hotp,
    new_totp,
)

from .token import (
    Token,
    generate,
    validate,
)

from .validator import (
    validate_hotp,
    validate_totp,
)

from .enrollment import (
    build,
    enrollment_url,
)

__all__ = [
    # Secrets
    'Secret',
    'HotpSecret',
    'TotpSecret',
    'new_hotp',
    'new_totp',
    # Tokens
    'Token',
    'generate',
    'validate',
    # Validation
    'validate_hotp',
    'validate_totp',
    # Enrollment
    'build',
    'enrollment_url',
]
