"""
Share-бэкенд: POST /share сохраняет непрозрачный payload со сроком действия,
GET /share?id= отдаёт его, пока срок не истёк.

Хранилище - JSON-файл в каталоге данных пользователя (см. utils.shares_path).
"""

from __future__ import annotations

import logging
import math
import threading
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request

from .models import StoredShare
from .store import parse_timestamp, utc_now
from .utils import load_json, save_json, shares_path

logger = logging.getLogger(__name__)

MIN_TTL = 60
MAX_TTL = 60 * 60 * 24 * 30
DEFAULT_TTL = 60 * 60 * 24 * 7
EXPIRED_RETENTION = timedelta(days=7)


def clamp_ttl(ttl_seconds: Any) -> int:
    """
    Ограничение TTL от злоупотреблений, не пользовательская настройка:
    - нет/ноль/не число/отрицательное -> 7 дней
    - иначе в пределах [60 с, 30 дней]
    """
    if isinstance(ttl_seconds, bool):
        return DEFAULT_TTL
    try:
        ttl = float(ttl_seconds)
    except (TypeError, ValueError):
        return DEFAULT_TTL
    if not math.isfinite(ttl) or ttl <= 0:
        return DEFAULT_TTL
    return int(min(max(ttl, MIN_TTL), MAX_TTL))


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class JsonShareRepository:
    """
    {id: {"payload": ..., "expires_at": ISO-8601}} в одном JSON-файле.
    Запись однократная, чтение многократное.
    Истёкшие записи удаляются при вставке, спустя EXPIRED_RETENTION после срока
    (до этого GET отвечает 410, а не 404).
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path or shares_path()
        self._lock = threading.Lock()

    def _load(self) -> dict:
        # битый файл - ошибка хранилища (500), а не пустое хранилище
        try:
            data = load_json(self.path, {})
        except ValueError as e:
            raise ValueError("Share storage file is corrupt") from e
        if not isinstance(data, dict):
            raise ValueError("Share storage file is corrupt")
        return data

    def _prune(self, data: dict, now: datetime) -> int:
        cutoff = now - EXPIRED_RETENTION
        stale = []
        for share_id, row in data.items():
            if not isinstance(row, dict):
                continue
            try:
                expires_at = parse_timestamp(row.get("expires_at"))
            except ValueError:
                # непонятный срок - не наша запись, не трогаем
                continue
            if expires_at < cutoff:
                stale.append(share_id)
        for share_id in stale:
            del data[share_id]
        return len(stale)

    def insert(self, payload: str, expires_at: datetime, now: Optional[datetime] = None) -> str:
        # без дефисов: в ссылке id отделяется от ключа первым '-'
        share_id = uuid.uuid4().hex
        with self._lock:
            data = self._load()
            pruned = self._prune(data, now or utc_now())
            data[share_id] = {"payload": payload, "expires_at": format_timestamp(expires_at)}
            save_json(self.path, data)
        if pruned:
            logger.info("Expired shares pruned", extra={"count": pruned})
        return share_id

    def get(self, share_id: str) -> Optional[StoredShare]:
        with self._lock:
            row = self._load().get(share_id)
        if not isinstance(row, dict):
            return None
        return StoredShare(
            id=share_id,
            payload=str(row.get("payload", "")),
            expires_at=parse_timestamp(row.get("expires_at")),
        )


def create_app(
    repository: Optional[JsonShareRepository] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    app = Flask(__name__)
    repo = repository or JsonShareRepository()
    now = clock or utc_now

    @app.route("/share", methods=["POST"])
    def create_share():
        body = request.get_json(silent=True)
        payload = body.get("payload") if isinstance(body, dict) else None
        if not payload or not isinstance(payload, str):
            return jsonify({"error": "Missing payload"}), 400

        ttl = clamp_ttl(body.get("ttlSeconds"))
        current = now()
        expires_at = current + timedelta(seconds=ttl)
        try:
            share_id = repo.insert(payload, expires_at, now=current)
        except Exception as e:
            logger.exception("Share insert failed")
            return jsonify({"error": str(e) or type(e).__name__}), 500

        logger.info("Share stored", extra={"share_id": share_id, "ttl_seconds": ttl})
        return jsonify({"id": share_id, "expiresAt": format_timestamp(expires_at)}), 200

    @app.route("/share", methods=["GET"])
    def get_share():
        share_id = request.args.get("id")
        if not share_id:
            return jsonify({"error": "Missing id"}), 400

        try:
            stored = repo.get(share_id)
        except Exception as e:
            logger.exception("Share lookup failed")
            return jsonify({"error": str(e) or type(e).__name__}), 500

        if stored is None:
            return jsonify({"error": "Not found"}), 404
        if stored.is_expired(now()):
            return jsonify({"error": "Expired"}), 410

        return jsonify({"payload": stored.payload, "expiresAt": format_timestamp(stored.expires_at)}), 200

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000)
