from __future__ import annotations
import asyncio
import binascii
import logging
from datetime import datetime
from typing import Mapping, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlsplit
from .cipher import KEY_BITS
from .codec import b64url_decode, b64url_encode, compress, decompress
from .errors import InvalidShareLink
from .models import ShareSnapshot
from .share import decode_snapshot, deserialize_snapshot, encode_snapshot, serialize_snapshot
from .store import ShareStore, ensure_not_expired
from .utils import public_base_url

logger = logging.getLogger(__name__)

KEY_BYTES = KEY_BITS // 8
SHARE_PARAM = "share"
LEGACY_PARAM = "data"
# =========================

# Формат ссылки: <base>?share=<id>-<keyHex>
# =========================
def build_share_link(base_url: str, share_id: str, key: bytes) -> str:
    # id не должен содержать '-': ссылка режется по первому дефису
    if not share_id or "-" in share_id:
        raise InvalidShareLink(f"Share id must be non-empty and contain no hyphen: {share_id!r}")
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}{urlencode({SHARE_PARAM: f'{share_id}-{key.hex()}'})}"


def parse_share_param(value: str) -> Tuple[str, bytes]:
    raw = (value or "").strip()
    share_id, sep, key_hex = raw.partition("-")
    if not share_id or not sep or not key_hex:
        raise InvalidShareLink("Share link must look like <id>-<keyHex>")
    if len(key_hex) != KEY_BYTES * 2:
        raise InvalidShareLink(f"Share key must be {KEY_BYTES * 2} hex chars, got {len(key_hex)}")
    try:
        key = binascii.unhexlify(key_hex)
    except (binascii.Error, ValueError) as e:
        raise InvalidShareLink(f"Share key is not hex: {e}") from e
    return share_id, key
# =========================

# Старый формат без шифрования: ?data=<сжатый JSON>
# =========================
def encode_legacy_data(snapshot: ShareSnapshot) -> str:
    return b64url_encode(compress(serialize_snapshot(snapshot)))

def decode_legacy_data(value: str) -> ShareSnapshot:
    if not value:
        raise InvalidShareLink("Empty data parameter")
    return deserialize_snapshot(decompress(b64url_decode(value)))
# =========================

# Создание / открытие ссылки
# =========================
def create_share(
    snapshot: ShareSnapshot,
    store: ShareStore,
    *,
    base_url: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
) -> str:
    """
    snapshot -> шифрование -> store.create -> ссылка с ключом.
    Ключ попадает только в возвращаемую ссылку.
    """
    enc = encode_snapshot(snapshot)
    share_id = store.create(enc.payload, ttl_seconds)
    link = build_share_link(base_url or public_base_url(), share_id, enc.key)
    logger.info("Share link created", extra={"share_id": share_id, "grades": len(snapshot.grades)})
    return link


async def create_share_async(
    snapshot: ShareSnapshot,
    store: ShareStore,
    *,
    base_url: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
) -> str:
    # отмена задачи просто бросает операцию; уже сохранённый payload истечёт сам по TTL
    enc = await asyncio.to_thread(encode_snapshot, snapshot)
    share_id = await asyncio.to_thread(store.create, enc.payload, ttl_seconds)
    return build_share_link(base_url or public_base_url(), share_id, enc.key)


def open_shared_link(params: Mapping[str, str], store: ShareStore, now: Optional[datetime] = None) -> ShareSnapshot:
    """
    Открывает снимок по параметрам запроса: share (приоритет) или legacy data.
    Raises:
        InvalidShareLink, AuthenticationError, DecodeError, ShareNotFound, ShareExpired, BackendError
    """
    share_value = params.get(SHARE_PARAM)
    if share_value:
        share_id, key = parse_share_param(share_value)
        stored = ensure_not_expired(store.fetch(share_id), now)
        return decode_snapshot(stored.payload, key)

    data_value = params.get(LEGACY_PARAM)
    if data_value:
        return decode_legacy_data(data_value)

    raise InvalidShareLink("Link has neither share nor data parameter")


def snapshot_from_url(url: str, store: ShareStore, now: Optional[datetime] = None) -> ShareSnapshot:
    query = parse_qs(urlsplit(url or "").query)
    params = {k: v[0] for k, v in query.items() if v}
    return open_shared_link(params, store, now)
