# Engine - Encryption Service
#
# Master key -> database key (PBKDF2-SHA256, per-database salt and
# iteration count) and per-field AES-256-GCM sealing.
# Sealed values are stored as base64 TEXT: (nonce, ciphertext).

import base64
import os
from typing import Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


class EncryptionService:
    """
    Key derivation and field encryption for vault databases.

    Flow:
    1. Host supplies the master key
    2. PBKDF2 derives a 256-bit key from master key + stored salt
    3. The derived key must open the stored canary (wrong key -> InvalidTag)
    4. Each password is sealed with AES-256-GCM under its own nonce
    """

    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 32
    NONCE_LENGTH = 12  # 96-bit nonce for GCM

    @staticmethod
    def derive_key(master_key: str, salt: bytes, iterations: int) -> bytes:
        """
        Derive the database key from the master key.

        Args:
            master_key: Master key text
            salt: Salt stored with the database
            iterations: PBKDF2 iteration count stored with the database

        Returns:
            256-bit key
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(master_key.encode("utf-8"))

    @staticmethod
    def generate_salt() -> bytes:
        return os.urandom(EncryptionService.SALT_LENGTH)

    @staticmethod
    def seal(plaintext: str, key: bytes) -> Tuple[str, str]:
        """Encrypt ``plaintext``; returns base64 ``(nonce, ciphertext)``."""
        nonce = os.urandom(EncryptionService.NONCE_LENGTH)
        ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
        return _b64encode(nonce), _b64encode(ciphertext)

    @staticmethod
    def unseal(nonce_b64: str, ciphertext_b64: str, key: bytes) -> str:
        """
        Decrypt a value produced by ``seal``.

        Raises:
            cryptography.exceptions.InvalidTag: wrong key or tampered data
        """
        plaintext = AESGCM(key).decrypt(
            _b64decode(nonce_b64), _b64decode(ciphertext_b64), None
        )
        return plaintext.decode("utf-8")

    @staticmethod
    def encode_salt(salt: bytes) -> str:
        return _b64encode(salt)

    @staticmethod
    def decode_salt(salt_b64: str) -> bytes:
        return _b64decode(salt_b64)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(data: str) -> bytes:
    return base64.b64decode(data.encode("ascii"))
