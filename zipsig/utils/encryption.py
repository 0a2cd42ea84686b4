"""
ZipSig Encryption Utility
Per-member AES-256-CBC with PBKDF2 key derivation.
"""
import os
from typing import NamedTuple

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import DecryptionError
from .logger import logger

SALT_SIZE = 16
IV_SIZE = 16
KEY_SIZE = 32
KDF_ITERATIONS = 100000


class EncryptedMember(NamedTuple):
    ciphertext: bytes
    salt: bytes
    iv: bytes


class FileCipher:
    """
    Encrypts and decrypts single archive members.

    Every call to encrypt_member draws a fresh salt and IV, so the same
    plaintext and password never produce the same ciphertext twice.
    """

    def __init__(self, iterations: int = KDF_ITERATIONS):
        self.iterations = iterations

    def _derive_key(self, password: str, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=self.iterations,
        )
        return kdf.derive(password.encode('utf-8'))

    def encrypt_member(self, plaintext: bytes, password: str) -> EncryptedMember:
        if not password:
            raise ValueError("Password must not be empty")

        salt = os.urandom(SALT_SIZE)
        iv = os.urandom(IV_SIZE)
        key = self._derive_key(password, salt)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return EncryptedMember(ciphertext, salt, iv)

    def decrypt_member(
        self,
        ciphertext: bytes,
        password: str,
        salt: bytes,
        iv: bytes,
        member_path: str = None
    ) -> bytes:
        """
        Reverse encrypt_member. A wrong password shows up as a padding
        failure and is raised as DecryptionError.
        """
        try:
            key = self._derive_key(password, salt)
            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            logger.debug(f"Decryption failed for {member_path or 'member'}: {e}")
            raise DecryptionError("Decryption failed", member_path=member_path) from e


__all__ = ["FileCipher", "EncryptedMember", "KDF_ITERATIONS"]
