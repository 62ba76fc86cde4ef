"""
AES message encryption used by Official Account callbacks in safe mode.
"""

from __future__ import annotations

import base64
import binascii
import struct
from typing import Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import ConfigurationError, MalformedPayload, SignatureMismatch

__all__ = ["MessageCrypto"]

BLOCK_SIZE_BITS = 256
RANDOM_PREFIX_SIZE = 16


class MessageCrypto:
    """
    Encrypts and decrypts callback messages with the account's EncodingAESKey.

    Plaintext layout: 16 random bytes, 4-byte big-endian message length, the
    message, then the app id.
    """

    def __init__(self, appid: str, encoding_aes_key: str) -> None:
        if not encoding_aes_key:
            raise ConfigurationError("WECHAT_ENCODING_AES_KEY is required for message encryption")
        try:
            self._key = base64.b64decode(encoding_aes_key + "=")
        except binascii.Error as exc:
            raise ConfigurationError("WECHAT_ENCODING_AES_KEY is not valid base64") from exc
        self._iv = self._key[:16]
        self._appid = appid.encode("utf-8")

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def decrypt(self, encrypted: Union[bytes, str]) -> bytes:
        try:
            ciphertext = base64.b64decode(encrypted)
            decryptor = self._cipher().decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
        except (binascii.Error, ValueError) as exc:
            raise MalformedPayload(f"Unable to decrypt message: {exc}") from exc

        if len(plain) < RANDOM_PREFIX_SIZE + 4:
            raise MalformedPayload("Decrypted message is truncated")

        (length,) = struct.unpack(">I", plain[RANDOM_PREFIX_SIZE:RANDOM_PREFIX_SIZE + 4])
        start = RANDOM_PREFIX_SIZE + 4
        message = plain[start:start + length]
        appid = plain[start + length:]
        if appid != self._appid:
            raise SignatureMismatch("Decrypted message belongs to a different app id")
        return message

    def encrypt(self, message: bytes, random_prefix: bytes) -> bytes:
        if len(random_prefix) != RANDOM_PREFIX_SIZE:
            raise ValueError(f"random_prefix must be {RANDOM_PREFIX_SIZE} bytes")

        plain = random_prefix + struct.pack(">I", len(message)) + message + self._appid
        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(plain) + padder.finalize()
        encryptor = self._cipher().encryptor()
        return base64.b64encode(encryptor.update(padded) + encryptor.finalize())
