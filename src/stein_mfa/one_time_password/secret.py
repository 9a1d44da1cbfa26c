"""
One-time password secrets

A secret is an immutable value object in one of two variants:

- HotpSecret: counter based (RFC 4226), carries the counter used by the
  most recent generation
- TotpSecret: time based (RFC 6238), carries the period in seconds

Both share label, issuer, algorithm, digits and the raw key bytes. Advancing
a HOTP counter returns a new secret; the caller persists it before the next
generation.
"""

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, Optional

from ..config import MIN_SECRET_BITS, OTP_PERIOD, SUPPORTED_DIGITS, resolve_options
from ..core_crypto.otp_engine import Algorithm
from ..core_crypto.random_secret import base32_to_secret, generate_secret, secret_to_base32
from ..errors import IncompleteSecretState, InvalidArgument, InvalidSecretLength, MalformedSecret


@dataclass(frozen=True)
class Secret:
    """
    Fields common to both secret variants.

    Not instantiated directly; use HotpSecret / TotpSecret or the
    new_hotp / new_totp constructors.
    """
    label: str
    secret_value: bytes = field(repr=False)
    issuer: Optional[str] = None
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = 6

    otp_type: ClassVar[str] = ''

    def __post_init__(self):
        if type(self) is Secret:
            raise TypeError("Secret is abstract, use HotpSecret or TotpSecret")

        # Frozen dataclass: normalise via object.__setattr__
        object.__setattr__(self, 'secret_value', bytes(self.secret_value))
        object.__setattr__(self, 'algorithm', Algorithm.parse(self.algorithm))

        if len(self.secret_value) * 8 < MIN_SECRET_BITS:
            raise InvalidSecretLength(
                f"Secret must be at least {MIN_SECRET_BITS} bits, "
                f"got {len(self.secret_value) * 8}"
            )
        if self.digits not in SUPPORTED_DIGITS:
            raise InvalidArgument(f"digits must be one of {SUPPORTED_DIGITS}, got {self.digits!r}")

    @property
    def secret_base32(self) -> str:
        """Base32-encoded secret for authenticator apps."""
        return secret_to_base32(self.secret_value)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe storage form of this secret."""
        return {
            'type': self.otp_type,
            'label': self.label,
            'issuer': self.issuer,
            'algorithm': self.algorithm.value,
            'digits': self.digits,
            'secret': self.secret_base32,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Secret':
        """
        Restore a secret from its storage form.

        Raises:
            MalformedSecret: Missing keys, unknown type or undecodable secret
        """
        variants = {'hotp': HotpSecret, 'totp': TotpSecret}
        try:
            variant = variants[data['type']]
            common = {
                'label': data['label'],
                'secret_value': base32_to_secret(data['secret']),
                'issuer': data.get('issuer'),
                'algorithm': data.get('algorithm', Algorithm.SHA1),
                'digits': data.get('digits', 6),
            }
        except (KeyError, TypeError) as error:
            raise MalformedSecret(f"Stored secret is incomplete or has unknown type: {error}") from error
        return variant._from_stored(common, data)


@dataclass(frozen=True)
class HotpSecret(Secret):
    """HMAC-based (counter) secret."""
    counter: Optional[int] = 0

    otp_type: ClassVar[str] = 'hotp'

    def __post_init__(self):
        super().__post_init__()
        if self.counter is not None:
            if isinstance(self.counter, bool) or not isinstance(self.counter, int) or self.counter < 0:
                raise InvalidArgument(f"counter must be a non-negative integer, got {self.counter!r}")

    def require_counter(self) -> int:
        """Counter, or IncompleteSecretState if the secret has none."""
        if self.counter is None:
            raise IncompleteSecretState("HOTP must have counter")
        return self.counter

    def advance(self) -> 'HotpSecret':
        """Return a copy with the counter incremented; self is unchanged."""
        return replace(self, counter=self.require_counter() + 1)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['counter'] = self.counter
        return data

    @classmethod
    def _from_stored(cls, common: Dict[str, Any], data: Dict[str, Any]) -> 'HotpSecret':
        return cls(counter=data.get('counter', 0), **common)


@dataclass(frozen=True)
class TotpSecret(Secret):
    """Time-based secret."""
    period: Optional[int] = OTP_PERIOD

    otp_type: ClassVar[str] = 'totp'

    def __post_init__(self):
        super().__post_init__()
        if self.period is not None:
            if isinstance(self.period, bool) or not isinstance(self.period, int) or self.period <= 0:
                raise InvalidArgument(f"period must be a positive integer, got {self.period!r}")

    def require_period(self) -> int:
        """Period, or IncompleteSecretState if the secret has none."""
        if self.period is None:
            raise IncompleteSecretState("TOTP must have period")
        return self.period

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['period'] = self.period
        return data

    @classmethod
    def _from_stored(cls, common: Dict[str, Any], data: Dict[str, Any]) -> 'TotpSecret':
        return cls(period=data.get('period', OTP_PERIOD), **common)


def new_totp(label: str, **options) -> TotpSecret:
    """
    Create a time-based secret with freshly generated key material.

    Args:
        label: Account label (usually the user's email)
        **options: issuer, bits, algorithm, digits, period

    Returns:
        New TotpSecret
    """
    config = resolve_options('totp', **options)
    if config['period'] is None:
        raise InvalidArgument("period must be a positive integer, got None")
    return TotpSecret(
        label=label,
        secret_value=generate_secret(config['bits']),
        issuer=config['issuer'],
        algorithm=config['algorithm'],
        digits=config['digits'],
        period=config['period'],
    )


def new_hotp(label: str, **options) -> HotpSecret:
    """
    Create a counter-based secret with freshly generated key material.

    Args:
        label: Account label (usually the user's email)
        **options: issuer, bits, algorithm, digits, initial_counter

    Returns:
        New HotpSecret
    """
    config = resolve_options('hotp', **options)
    if config['initial_counter'] is None:
        raise InvalidArgument("initial_counter must be a non-negative integer, got None")
    return HotpSecret(
        label=label,
        secret_value=generate_secret(config['bits']),
        issuer=config['issuer'],
        algorithm=config['algorithm'],
        digits=config['digits'],
        counter=config['initial_counter'],
    )
