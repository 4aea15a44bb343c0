"""Credential cipher protocol (port) for stored data-source keys."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ICredentialCipher(Protocol):
    """Decrypts data-source keys as stored in the tenant registry."""

    def decrypt(self, stored: str) -> str:
        """Return the plain-text key.

        Raises:
            CredentialDecryptionError: If the stored value cannot be decrypted.
        """
        ...
