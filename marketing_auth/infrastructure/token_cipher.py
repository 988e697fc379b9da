# marketing_auth/infrastructure/token_cipher.py
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_LENGTH = 32
IV_LENGTH = 16


class DecryptionError(Exception):
    pass


def derive_legacy_key(secret: str) -> bytes:
    """
    Space-pad / truncate the secret to 32 characters and use it as the AES key.

    This is not a KDF (no salt, no stretching). It is kept so stores written by
    earlier deployments stay readable.
    """
    key = secret.ljust(KEY_LENGTH)[:KEY_LENGTH].encode("utf-8")
    if len(key) != KEY_LENGTH:
        raise ValueError("encryption key must encode to exactly 32 bytes after padding")
    return key


class TokenCipher:
    """AES-256-CBC with a random IV per message; output is "ivHex:cipherHex"."""

    def __init__(self, secret: str):
        self._key = derive_legacy_key(secret)

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        data = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(data) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        try:
            iv_hex, cipher_hex = token.split(":")
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(cipher_hex)
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            data = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(data) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, TypeError, AttributeError) as e:
            # wrong key, bad padding, truncated or non-hex input
            raise DecryptionError(str(e)) from e
