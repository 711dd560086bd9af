"""Tests for the FieldEncryptor (Fernet-based payload encryption)."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from healthpath.core.storage.encryption import EncryptionError, FieldEncryptor


@pytest.fixture
def key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def encryptor(key: str) -> FieldEncryptor:
    return FieldEncryptor(key)


class TestRoundTrip:
    def test_analysis_payload(self, encryptor: FieldEncryptor):
        data = {"overall_score": 62, "risk_analysis": {"diabetes_risk": 28}}
        token = encryptor.encrypt(data)
        assert isinstance(token, str)
        assert "overall_score" not in token
        assert encryptor.decrypt(token) == data

    def test_null_round_trip(self, encryptor: FieldEncryptor):
        assert encryptor.encrypt(None) == ""
        assert encryptor.decrypt("") is None

    def test_unserializable_raises(self, encryptor: FieldEncryptor):
        with pytest.raises(EncryptionError, match="Encryption failed"):
            encryptor.encrypt({"when": object()})


class TestKeyValidation:
    def test_empty_key_raises(self):
        with pytest.raises(EncryptionError, match="must not be empty"):
            FieldEncryptor("")

    def test_whitespace_key_raises(self):
        with pytest.raises(EncryptionError, match="must not be empty"):
            FieldEncryptor("  ,  ")

    def test_invalid_key_raises(self):
        with pytest.raises(EncryptionError, match="Invalid encryption key"):
            FieldEncryptor("not-a-valid-fernet-key")


class TestCorruptData:
    def test_wrong_key_cannot_decrypt(self, encryptor: FieldEncryptor):
        token = encryptor.encrypt({"secret": "data"})
        other = FieldEncryptor(Fernet.generate_key().decode())
        with pytest.raises(EncryptionError, match="invalid token"):
            other.decrypt(token)

    def test_garbage_token_raises(self, encryptor: FieldEncryptor):
        with pytest.raises(EncryptionError):
            encryptor.decrypt("not-a-valid-token")


class TestKeyRotation:
    def test_old_tokens_readable_after_rotation(self, key: str):
        old = FieldEncryptor(key)
        token = old.encrypt({"overall_grade": "B"})

        new_key = Fernet.generate_key().decode()
        rotated = FieldEncryptor(f"{new_key},{key}")
        assert rotated.key_count == 2
        assert rotated.decrypt(token) == {"overall_grade": "B"}

        fresh = rotated.rotate(token)
        assert FieldEncryptor(new_key).decrypt(fresh) == {"overall_grade": "B"}

    def test_rotate_empty_token(self, encryptor: FieldEncryptor):
        assert encryptor.rotate("") == ""

    def test_rotate_foreign_token_raises(self, encryptor: FieldEncryptor):
        foreign = FieldEncryptor(Fernet.generate_key().decode()).encrypt(1)
        with pytest.raises(EncryptionError, match="Rotation failed"):
            encryptor.rotate(foreign)


class TestGenerateKey:
    def test_generated_key_works(self):
        key = FieldEncryptor.generate_key()
        assert len(key) == 44
        enc = FieldEncryptor(key)
        assert enc.decrypt(enc.encrypt({"test": True})) == {"test": True}
