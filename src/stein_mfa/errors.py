"""
Exception taxonomy for stein_mfa.

All failures are local and synchronous: they are raised at the call that
triggered them and nothing in the package retries or recovers from them.
Value errors also subclass ValueError so callers that only catch ValueError
keep working.
"""


class OTPError(Exception):
    """Base class for every error raised by stein_mfa."""
    pass


class InvalidSecretLength(OTPError, ValueError):
    """Raised when requested or supplied key material is too short."""
    pass


class MalformedSecret(OTPError, ValueError):
    """Raised when a textual or stored secret cannot be decoded."""
    pass


class IncompleteSecretState(OTPError):
    """Raised when a secret is missing its counter (HOTP) or period (TOTP)."""
    pass


class InvalidArgument(OTPError, ValueError):
    """Raised for out-of-domain input such as a negative time tolerance."""
    pass


class SealingError(OTPError):
    """Raised when a sealed secret blob fails authentication or parsing."""
    pass
