"""
Password Manager
================
Keeps the login password encrypted in memory between construction and use.

Key: scrypt(username, random per-instance salt) → 32 bytes.
Cipher: AES-256-CBC, PKCS7 padding, fresh IV per encryption, stored as
``"<iv hex>:<ciphertext hex>"``.

This is obfuscation against casual memory inspection, not a boundary
against an attacker who can run code in the process.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

logger = logging.getLogger(__name__)

_KEY_LENGTH = 32
_IV_LENGTH = 16
_SALT_LENGTH = 16


class PasswordManager:

    def __init__(self, username: str, password: str):
        self._salt = os.urandom(_SALT_LENGTH)
        self._key = Scrypt(salt=self._salt, length=_KEY_LENGTH, n=2 ** 14, r=8, p=1).derive(
            username.encode("utf-8")
        )
        self._encrypted: Optional[str] = self._encrypt(password) if password else None

    def _encrypt(self, password: str) -> str:
        iv = os.urandom(_IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(password.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self) -> Optional[str]:
        """Plaintext password, or None once cleared or if the state is corrupt."""
        if not self._encrypted:
            return None
        try:
            iv_hex, ciphertext_hex = self._encrypted.split(":")
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(bytes.fromhex(iv_hex))).decryptor()
            padded = decryptor.update(bytes.fromhex(ciphertext_hex)) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
        except ValueError as exc:
            logger.warning(f"[AUTH] Stored credential unreadable: {type(exc).__name__}")
            return None

    def clear(self) -> None:
        """Forget the credential. Irreversible."""
        self._encrypted = None

    def has_password(self) -> bool:
        return self._encrypted is not None
