"""Tests for the SSN encryption service."""

from cryptography.fernet import Fernet

from pcm.services.encryption import EncryptionService


def test_encrypt_decrypt_roundtrip():
    svc = EncryptionService()
    encrypted = svc.encrypt("123-45-6789")

    assert encrypted != "123-45-6789"  # not stored in plaintext
    assert svc.decrypt(encrypted) == "123-45-6789"


def test_blank_values_stored_as_null():
    svc = EncryptionService()
    assert svc.encrypt("") is None
    assert svc.encrypt(None) is None
    assert svc.decrypt("") is None


def test_configured_key_is_shared():
    key = Fernet.generate_key().decode()
    ciphertext = EncryptionService(key).encrypt("987-65-4321")
    assert EncryptionService(key).decrypt(ciphertext) == "987-65-4321"
