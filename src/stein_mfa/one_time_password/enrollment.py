"""
Enrollment URIs in the Google Authenticator key URI format.

See also:
    https://github.com/google/google-authenticator/wiki/Key-Uri-Format

The URL looks like this:
    otpauth://totp/ACME:alice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=ACME&period=30
    otpauth://hotp/alice%40example.com?secret=JBSWY3DPEHPK3PXP&algorithm=SHA256&digits=8&counter=0

`algorithm` and `digits` are only written when they differ from the
defaults (SHA1, 6); consumers assume the default when they are absent.
The counter (HOTP) or period (TOTP) is always written.
"""

from typing import Dict, Union
from urllib.parse import quote, urlencode

from ..config import OTP_DIGITS
from ..core_crypto.otp_engine import Algorithm
from ..errors import InvalidArgument
from .secret import HotpSecret, Secret, TotpSecret


BASE_URI = "otpauth://{0}/{1}?{2}"


def label_maybe_with_issuer(secret: Secret) -> str:
    """Percent-encoded label, prefixed with 'issuer:' when an issuer is set."""
    label = quote(secret.label, safe='')
    if secret.issuer is not None:
        label = quote(secret.issuer, safe='') + ":" + label
    return label


def build(secret: Secret) -> str:
    """
    Returns the provisioning URI for the secret; works for either TOTP or HOTP.

    This can then be encoded in a QR Code and used to provision an
    authenticator app.

    Args:
        secret: HotpSecret or TotpSecret

    Returns:
        otpauth:// URI

    Raises:
        IncompleteSecretState: HOTP without counter or TOTP without period
    """
    if isinstance(secret, HotpSecret):
        type_field = ('counter', secret.require_counter())
    elif isinstance(secret, TotpSecret):
        type_field = ('period', secret.require_period())
    else:
        raise InvalidArgument(f"Cannot build an enrollment URI for {type(secret).__name__}")

    url_args: Dict[str, Union[int, str]] = {'secret': secret.secret_base32}

    if secret.issuer is not None:
        url_args['issuer'] = secret.issuer
    if secret.algorithm is not Algorithm.SHA1:
        url_args['algorithm'] = secret.algorithm.value
    if secret.digits != OTP_DIGITS:
        url_args['digits'] = secret.digits

    key, value = type_field
    url_args[key] = value

    query = urlencode(url_args).replace("+", "%20")
    return BASE_URI.format(secret.otp_type, label_maybe_with_issuer(secret), query)


enrollment_url = build
