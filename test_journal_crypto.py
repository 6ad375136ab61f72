import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

import journal_crypto as jc


def _legacy_blob(plaintext: bytes, password: str) -> bytes:
    nonce = os.urandom(jc.NONCE_SIZE)
    return AESGCM(jc.derive_key(password)).encrypt(nonce, plaintext, None) + nonce


def test_encrypt_decrypt_roundtrip():
    blob = jc.encrypt(b"hello journal", "hunter2")
    assert jc.decrypt(blob, "hunter2") == b"hello journal"


def test_roundtrip_empty_password_and_payload():
    assert jc.decrypt(jc.encrypt(b"", ""), "") == b""


def test_blob_layout():
    blob = jc.encrypt(b"abc", "pw")
    assert len(blob) == jc.SALT_SIZE + 3 + jc.TAG_SIZE + jc.NONCE_SIZE


def test_encrypt_uses_fresh_randomness():
    assert jc.encrypt(b"same", "pw") != jc.encrypt(b"same", "pw")


def test_nonce_is_trailing_bytes(monkeypatch):
    counter = iter([b"s" * jc.SALT_SIZE, b"n" * jc.NONCE_SIZE])
    monkeypatch.setattr(jc.os, "urandom", lambda n: next(counter))
    blob = jc.encrypt(b"x", "pw")
    assert blob.startswith(b"s" * jc.SALT_SIZE)
    assert blob.endswith(b"n" * jc.NONCE_SIZE)


def test_wrong_password_fails():
    blob = jc.encrypt(b"secret", "hunter2")
    with pytest.raises(jc.DecryptionError, match="invalid password or corrupted file"):
        jc.decrypt(blob, "wrong")


@pytest.mark.parametrize("position", [0, 20, -1])
def test_tampering_is_detected(position):
    blob = bytearray(jc.encrypt(b"secret payload", "pw"))
    blob[position] ^= 0x01
    with pytest.raises(jc.DecryptionError):
        jc.decrypt(bytes(blob), "pw")


@pytest.mark.parametrize("size", [0, 5, jc.NONCE_SIZE])
def test_too_small_blob(size):
    with pytest.raises(jc.CorruptedDataError, match="too small"):
        jc.decrypt(b"\x00" * size, "pw")


def test_short_but_not_tiny_blob_is_a_decryption_error():
    with pytest.raises(jc.DecryptionError):
        jc.decrypt(b"\x00" * (jc.NONCE_SIZE + 1), "pw")


def test_errors_share_base_class():
    assert issubclass(jc.CorruptedDataError, jc.CryptoError)
    assert issubclass(jc.DecryptionError, jc.CryptoError)


def test_legacy_unsalted_blob_still_decrypts():
    blob = _legacy_blob(b"old data", "hunter2")
    assert jc.decrypt(blob, "hunter2") == b"old data"
    with pytest.raises(jc.DecryptionError):
        jc.decrypt(blob, "wrong")


def test_derive_key_without_salt_pads_and_truncates():
    assert jc.derive_key("ab") == b"ab" + b"\x00" * 30
    assert jc.derive_key("x" * 40) == b"x" * 32
    assert len(jc.derive_key("")) == jc.KEY_SIZE


def test_derive_key_with_salt_uses_argon2():
    salt = b"\x01" * jc.SALT_SIZE
    key = jc.derive_key("pw", salt)
    assert len(key) == jc.KEY_SIZE
    assert key == jc.derive_key("pw", salt)
    assert key != jc.derive_key("pw", b"\x02" * jc.SALT_SIZE)
    assert key != jc.derive_key("pw")
