from __future__ import annotations
import os
from dataclasses import dataclass, field
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from .errors import AuthenticationError, DecodeError

KEY_BITS = 128
IV_BYTES = 12  # 96 бит, рекомендованный размер nonce для GCM


@dataclass(frozen=True)
class EncryptionResult:
    ciphertext: bytes  # вместе с тегом (последние 16 байт)
    iv: bytes
    key: bytes = field(repr=False)


def encrypt(plaintext: bytes) -> EncryptionResult:
    """
    AES-128-GCM со свежим случайным ключом и IV на каждый вызов.
    Ключ одноразовый, поэтому повтор IV под одним ключом невозможен по построению.
    """
    key = AESGCM.generate_key(bit_length=KEY_BITS)
    iv = os.urandom(IV_BYTES)
    ct = AESGCM(key).encrypt(iv, bytes(plaintext), None)
    return EncryptionResult(ciphertext=ct, iv=iv, key=key)


def decrypt(ciphertext: bytes, iv: bytes, key: bytes) -> bytes:
    try:
        aead = AESGCM(bytes(key))
    except ValueError as e:
        # ключ не 128/192/256 бит
        raise DecodeError(f"Invalid key: {e}") from e

    try:
        return aead.decrypt(bytes(iv), bytes(ciphertext), None)
    except InvalidTag as e:
        raise AuthenticationError("Authentication tag mismatch: wrong key or tampered data") from e
    except ValueError as e:
        # недопустимая длина IV
        raise DecodeError(f"Invalid IV: {e}") from e
