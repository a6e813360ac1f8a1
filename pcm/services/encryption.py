"""
Application-layer encryption for patient identifiers stored at rest.

The SSN is the only identifier the consent module keeps encrypted; it is
decrypted just long enough to build the contained FHIR Patient.
"""

from __future__ import annotations

from cryptography.fernet import Fernet

from pcm.config import settings


class EncryptionService:
    """Wraps Fernet symmetric encryption for PHI fields."""

    def __init__(self, key: str | bytes | None = None):
        raw_key = key or settings.PHI_ENCRYPTION_KEY
        if raw_key:
            self._fernet = Fernet(raw_key.encode() if isinstance(raw_key, str) else raw_key)
        else:
            # Development only: ciphertext does not survive a restart
            self._fernet = Fernet(Fernet.generate_key())

    def encrypt(self, plaintext: str | None) -> str | None:
        """Encrypt a string; blank values are stored as NULL."""
        if not plaintext:
            return None
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str | None) -> str | None:
        if not ciphertext:
            return None
        return self._fernet.decrypt(ciphertext.encode()).decode()


encryption = EncryptionService()
