from __future__ import annotations
import base64
import binascii
import zlib
from .errors import DecodeError

COMPRESSION_LEVEL = 9
MAX_DECOMPRESSED_BYTES = 8 * 1024 * 1024


def compress(data: bytes) -> bytes:
    # сжимаем до шифрования: шифротекст уже не сжимается
    return zlib.compress(bytes(data), COMPRESSION_LEVEL)

def decompress(data: bytes, max_size: int = MAX_DECOMPRESSED_BYTES) -> bytes:
    # на выходе не больше max_size байт; лишний байт сверх лимита = ошибка
    d = zlib.decompressobj()
    try:
        out = d.decompress(bytes(data), max_size + 1)
    except zlib.error as e:
        raise DecodeError(f"Corrupted compressed data: {e}") from e
    if len(out) > max_size:
        raise DecodeError(f"Decompressed data exceeds {max_size} bytes")
    if not d.eof:
        raise DecodeError("Corrupted compressed data: truncated stream")
    return out

def b64url_encode(data: bytes) -> str:
    # base64url без '=' - безопасно для URL и не содержит ':'
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")

def b64url_decode(text: str) -> bytes:
    s = (text or "").strip()
    pad = (4 - len(s) % 4) % 4
    try:
        return base64.b64decode(s + "=" * pad, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64url segment: {e}") from e
