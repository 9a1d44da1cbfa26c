"""
Secret Sealing (AES-GCM)

Encrypts the storage form of a secret so callers can keep OTP keys
encrypted at rest. Storage itself stays with the caller.

Blob layout (version 1):
    version (1 byte) || nonce (12 bytes) || AES-GCM ciphertext + tag

The blob is authenticated with a fixed associated-data string, so any
modification of version, nonce or ciphertext fails on unseal.
"""

import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import OTPError, SealingError
from ..one_time_password.secret import Secret


BLOB_VERSION = 1
NONCE_SIZE = 12           # 96-bit nonce (GCM recommended)
TAG_SIZE = 16             # 128-bit authentication tag
SUPPORTED_KEY_SIZES = (16, 24, 32)
ASSOCIATED_DATA = b"stein_mfa.secret.v1"


class SecretSealer:
    """
    AES-GCM authenticated encryption for stored secrets.

    Example:
        >>> sealer = SecretSealer(SecretSealer.generate_key())
        >>> blob = sealer.seal(secret)
        >>> sealer.unseal(blob) == secret
        True
    """

    def __init__(self, key: bytes):
        """
        Initialize with encryption key.

        Args:
            key: 128, 192 or 256-bit AES key
        """
        if len(key) not in SUPPORTED_KEY_SIZES:
            raise ValueError(f"Key must be one of {SUPPORTED_KEY_SIZES} bytes")
        self._aesgcm = AESGCM(key)

    @staticmethod
    def generate_key() -> bytes:
        """Generate a random 256-bit sealing key."""
        return AESGCM.generate_key(bit_length=256)

    def seal(self, secret: Secret) -> bytes:
        """
        Encrypt a secret's storage form.

        Args:
            secret: HotpSecret or TotpSecret

        Returns:
            Opaque versioned blob
        """
        plaintext = json.dumps(secret.to_dict(), separators=(',', ':')).encode('utf-8')
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext, ASSOCIATED_DATA)
        return bytes([BLOB_VERSION]) + nonce + ciphertext

    def unseal(self, blob: bytes) -> Secret:
        """
        Decrypt a blob produced by seal().

        Raises:
            SealingError: Unknown version, truncated blob, failed
                authentication (wrong key or tampering) or a payload that
                is not a valid secret
        """
        blob = bytes(blob)
        if len(blob) < 1 + NONCE_SIZE + TAG_SIZE:
            raise SealingError("Sealed secret is truncated")
        if blob[0] != BLOB_VERSION:
            raise SealingError(f"Unsupported sealed secret version {blob[0]}")

        nonce = blob[1:1 + NONCE_SIZE]
        ciphertext = blob[1 + NONCE_SIZE:]

        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, ASSOCIATED_DATA)
        except InvalidTag as error:
            raise SealingError("Sealed secret authentication failed") from error

        try:
            data = json.loads(plaintext.decode('utf-8'))
        except ValueError as error:
            raise SealingError("Sealed secret payload is not valid JSON") from error

        try:
            return Secret.from_dict(data)
        except OTPError as error:
            raise SealingError("Sealed secret payload is not a valid secret") from error
