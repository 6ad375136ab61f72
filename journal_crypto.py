"""Encryption helpers for journal and project files.

A saved file is ``salt || ciphertext || tag || nonce``: AES-256-GCM under a
key derived from the password with Argon2id, with the 12-byte nonce as the
last bytes of the file. Files written before the salt was introduced
(``ciphertext || tag || nonce`` under the raw zero-padded password) are still
accepted by :func:`decrypt`.
"""

from __future__ import annotations

import os
from typing import Dict, Optional

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_SIZE = 32
NONCE_SIZE = 12
SALT_SIZE = 16
TAG_SIZE = 16

KDF_PARAMS: Dict[str, int] = {
    "time_cost": 3,
    "memory_cost": 65536,
    "parallelism": 1,
}


class CryptoError(Exception):
    """Raised when encryption or decryption fails."""


class CorruptedDataError(CryptoError):
    """Raised when a blob is too short to hold a nonce."""


class DecryptionError(CryptoError):
    """Raised when authentication fails: wrong password or a damaged file."""


def derive_key(password: str, salt: Optional[bytes] = None) -> bytes:
    """Return the 32-byte AES key for ``password``.

    With a ``salt`` the key comes from Argon2id. Without one the password's
    UTF-8 bytes are zero-padded or truncated to 32 bytes, which is how files
    without a salt were keyed.
    """
    secret = password.encode("utf-8")
    if salt is None:
        return secret[:KEY_SIZE].ljust(KEY_SIZE, b"\x00")
    return hash_secret_raw(
        secret=secret,
        salt=salt,
        time_cost=KDF_PARAMS["time_cost"],
        memory_cost=KDF_PARAMS["memory_cost"],
        parallelism=KDF_PARAMS["parallelism"],
        hash_len=KEY_SIZE,
        type=Type.ID,
    )


def encrypt(plaintext: bytes, password: str) -> bytes:
    """Encrypt ``plaintext``; every call uses a fresh salt and nonce."""
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password, salt)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return salt + ciphertext + nonce


def decrypt(blob: bytes, password: str) -> bytes:
    """Decrypt a blob produced by :func:`encrypt` (or a legacy unsalted one)."""
    if len(blob) <= NONCE_SIZE:
        raise CorruptedDataError("corrupted file [too small]")

    body, nonce = blob[:-NONCE_SIZE], blob[-NONCE_SIZE:]

    if len(body) >= SALT_SIZE + TAG_SIZE:
        salt, ciphertext = body[:SALT_SIZE], body[SALT_SIZE:]
        try:
            return AESGCM(derive_key(password, salt)).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            pass  # fall through to the unsalted layout

    try:
        return AESGCM(derive_key(password)).decrypt(nonce, body, None)
    except InvalidTag as exc:
        raise DecryptionError("decryption failure: invalid password or corrupted file") from exc
