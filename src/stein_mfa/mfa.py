"""
Multi-factor authentication helpers

Ties the OTP core to an application's account flow:
- Per-user secret creation with an explicit issuer and defaults
- Token generation and validation with audit events
- Google Authenticator compatible enrollment URL
- Enrollment QR code as an SVG document or an <img> element

Note for a counter-based secret you need to make sure the counter is right.
If you generate tokens yourself (e.g. to send by SMS), save the returned
`token.secret` to your data store before generating again.
"""

import base64
import html
import io
from typing import Iterable, Optional

import qrcode
import qrcode.image.svg
from qrcode.constants import ERROR_CORRECT_L

from .errors import InvalidArgument
from .integration.event_logger import EventLogger
from .one_time_password.enrollment import enrollment_url
from .one_time_password.secret import HotpSecret, Secret, new_hotp, new_totp
from .one_time_password.token import Token, generate, validate


# QR rendering parameters
QR_BOX_SIZE = 10
QR_BORDER = 4


def enrollment_svg_string_for_secret(secret: Secret) -> str:
    """
    Returns the raw SVG document for the enrollment QR code of a secret.

    Args:
        secret: HotpSecret or TotpSecret

    Returns:
        SVG XML text
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_L,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
        image_factory=qrcode.image.svg.SvgImage,
    )
    qr.add_data(enrollment_url(secret))
    qr.make(fit=True)

    buffer = io.BytesIO()
    qr.make_image().save(buffer)
    return buffer.getvalue().decode('utf-8')


def enrollment_svg_img_element_for_secret(secret: Secret, id: Optional[str] = None,
                                          classes: Optional[Iterable[str]] = None) -> str:
    """
    Returns an <img /> tag whose src is a data: URI of the enrollment QR code.

    Args:
        secret: HotpSecret or TotpSecret
        id: Optional id attribute
        classes: Optional CSS classes for the class attribute

    Returns:
        HTML string, e.g. <img src="data:image/svg+xml;base64,..." id="qr" />
    """
    b64 = base64.b64encode(enrollment_svg_string_for_secret(secret).encode('utf-8')).decode('ascii')

    parts = [f'<img src="data:image/svg+xml;base64,{b64}"']
    if id is not None:
        parts.append(f'id="{html.escape(id, quote=True)}"')
    classes = list(classes or [])
    if classes:
        parts.append(f'class="{html.escape(" ".join(classes), quote=True)}"')
    parts.append("/>")

    return " ".join(parts)


class MFAService:
    """
    One-time password second factor for an application.

    Example:
        >>> mfa = MFAService(issuer="ACME")
        >>> secret = mfa.create_secret_for_user("alice@example.com")
        >>> token = mfa.generate(secret)
        >>> mfa.validate_token(secret, token.value)
        True
    """

    def __init__(self, issuer: Optional[str] = None,
                 event_logger: Optional[EventLogger] = None,
                 **defaults):
        """
        Initialize the service.

        Args:
            issuer: Service name shown in authenticator apps
            event_logger: Optional audit logger
            **defaults: Option overrides applied to every new secret
                (bits, algorithm, digits, period, initial_counter)
        """
        self._issuer = issuer
        self._event_logger = event_logger
        self._defaults = defaults

    @property
    def issuer(self) -> Optional[str]:
        return self._issuer

    def create_secret_for_user(self, email: str, otp_type: str = "totp",
                               **options) -> Secret:
        """
        Create a secret of `otp_type` ('totp' or 'hotp') for a user.

        Per-call options win over the service defaults; options of the other
        type in the service defaults are ignored.

        Raises:
            InvalidArgument: Unknown type or option
        """
        constructors = {'totp': new_totp, 'hotp': new_hotp}
        if otp_type not in constructors:
            raise InvalidArgument(f"Unknown OTP type: {otp_type!r}")

        other = 'period' if otp_type == 'hotp' else 'initial_counter'
        config = {k: v for k, v in self._defaults.items() if k != other}
        config.setdefault('issuer', self._issuer)
        config.update(options)

        secret = constructors[otp_type](email, **config)
        if self._event_logger is not None:
            self._event_logger.log_secret_created(
                email, otp_type, secret.algorithm.value, secret.digits
            )
        return secret

    def generate(self, secret: Secret, timestamp: Optional[float] = None) -> Token:
        """Generate a token; persist token.secret for HOTP."""
        token = generate(secret, timestamp)
        if self._event_logger is not None:
            counter = token.secret.counter if isinstance(token.secret, HotpSecret) else None
            self._event_logger.log_token_generated(secret.label, secret.otp_type, counter)
        return token

    def validate_token(self, secret: Secret, code: str, time_tolerance: int = 0,
                       timestamp: Optional[float] = None) -> bool:
        """Validate user input against a secret."""
        valid = validate(code, secret, time_tolerance, timestamp)
        if self._event_logger is not None:
            self._event_logger.log_verification(secret.label, secret.otp_type, valid, time_tolerance)
        return valid

    def enrollment_url(self, secret: Secret) -> str:
        url = enrollment_url(secret)
        if self._event_logger is not None:
            self._event_logger.log_enrollment(secret.label, secret.otp_type, "uri")
        return url

    def enrollment_svg_string_for_secret(self, secret: Secret) -> str:
        svg = enrollment_svg_string_for_secret(secret)
        if self._event_logger is not None:
            self._event_logger.log_enrollment(secret.label, secret.otp_type, "svg")
        return svg

    def enrollment_svg_img_element_for_secret(self, secret: Secret, id: Optional[str] = None,
                                              classes: Optional[Iterable[str]] = None) -> str:
        element = enrollment_svg_img_element_for_secret(secret, id=id, classes=classes)
        if self._event_logger is not None:
            self._event_logger.log_enrollment(secret.label, secret.otp_type, "img")
        return element

    def __repr__(self) -> str:
        return f"MFAService(issuer={self._issuer!r})"
