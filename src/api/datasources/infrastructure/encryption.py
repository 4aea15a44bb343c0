"""AES-256-GCM encryption for data-source keys stored in the registry.

Stored format: ``base64(iv):base64(auth_tag):base64(ciphertext)`` with a
16-byte IV and a 16-byte authentication tag.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from datasources.ports.credentials import ICredentialCipher
from datasources.ports.exceptions import CredentialDecryptionError

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_LENGTH = 32


class CredentialCipher(ICredentialCipher):
    """Encrypts and decrypts data-source keys with a process-wide AES key."""

    def __init__(self, hex_key: str):
        """Initialize with a hex encoded 256-bit key.

        Args:
            hex_key: 64 hex characters.

        Raises:
            ValueError: If the key is not 64 hex characters.
        """
        try:
            key = bytes.fromhex(hex_key)
        except ValueError as e:
            raise ValueError(
                "Encryption key must be 64 hex characters (32 bytes for AES-256)"
            ) from e
        if len(key) != KEY_LENGTH:
            raise ValueError(
                "Encryption key must be 64 hex characters (32 bytes for AES-256)"
            )
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a key for storage.

        Raises:
            CredentialDecryptionError: If ``plaintext`` is empty or not a string.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise CredentialDecryptionError("Cannot encrypt an empty value")

        iv = os.urandom(IV_LENGTH)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext.
        ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
        return ":".join(
            base64.b64encode(part).decode("ascii") for part in (iv, tag, ciphertext)
        )

    def decrypt(self, stored: str) -> str:
        """Decrypt a stored key.

        Raises:
            CredentialDecryptionError: If the value is malformed, was tampered
                with, or was encrypted under a different key.
        """
        if not isinstance(stored, str) or not stored:
            raise CredentialDecryptionError("Cannot decrypt an empty value")

        parts = stored.split(":")
        if len(parts) != 3 or not all(parts):
            raise CredentialDecryptionError(
                "Invalid encrypted key format, expected iv:authTag:encrypted"
            )

        try:
            iv, tag, ciphertext = (
                base64.b64decode(part, validate=True) for part in parts
            )
        except (binascii.Error, ValueError) as e:
            raise CredentialDecryptionError("Encrypted key is not valid base64") from e

        if len(iv) != IV_LENGTH:
            raise CredentialDecryptionError(f"Invalid IV length: {len(iv)}")
        if len(tag) != AUTH_TAG_LENGTH:
            raise CredentialDecryptionError(f"Invalid auth tag length: {len(tag)}")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise CredentialDecryptionError(
                "Failed to decrypt key: authentication failed"
            ) from e
        return plaintext.decode("utf-8")
