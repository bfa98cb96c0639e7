"""
HTTP-клиент хранилища ссылок (POST/GET /share).

Хранилище видит только непрозрачный payload и срок действия, ключ туда не попадает.
Повторов нет: ошибка бэкенда отдаётся вызывающему коду как BackendError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

import requests
from dateutil import parser as dtparser

from .errors import BackendError, ShareExpired, ShareNotFound
from .models import StoredShare
from .utils import http_timeout, share_api_url

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """ISO-8601 -> aware datetime (без зоны считаем UTC)."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    dt = dtparser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def ensure_not_expired(stored: StoredShare, now: Optional[datetime] = None) -> StoredShare:
    """
    Срок проверяется на границе: даже если бэкенд вернул запись,
    после expires_at она считается истёкшей.
    """
    now = now or utc_now()
    if stored.is_expired(now):
        raise ShareExpired(f"Share {stored.id} expired at {stored.expires_at.isoformat()}")
    return stored


class ShareStore(Protocol):
    def create(self, payload: str, ttl_seconds: Optional[int] = None) -> str:
        ...

    def fetch(self, share_id: str) -> StoredShare:
        ...


class HttpShareStore:
    """
    Клиент share-бэкенда.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ):
        self.base_url = (base_url or share_api_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else http_timeout()
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.clock = clock or utc_now

    @property
    def share_url(self) -> str:
        return f"{self.base_url}/share"

    def _request(self, method: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, self.share_url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(
                "Share backend request failed",
                extra={"method": method, "url": self.share_url, "error": str(e)},
            )
            raise BackendError(f"Share backend unreachable: {e}") from e

    @staticmethod
    def _json_body(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _backend_error(self, response: requests.Response) -> BackendError:
        body = self._json_body(response)
        msg = body.get("error") or response.reason or "Unknown error"
        logger.warning(
            "Share backend returned an error",
            extra={"url": self.share_url, "status_code": response.status_code, "error": msg},
        )
        return BackendError(str(msg), status_code=response.status_code)

    def create(self, payload: str, ttl_seconds: Optional[int] = None) -> str:
        body: Dict[str, Any] = {"payload": payload}
        if ttl_seconds is not None:
            body["ttlSeconds"] = ttl_seconds

        response = self._request("POST", json=body)
        if response.status_code not in (200, 201):
            raise self._backend_error(response)

        data = self._json_body(response)
        share_id = data.get("id")
        if not isinstance(share_id, str) or not share_id:
            raise BackendError("Share backend response has no id", status_code=response.status_code)

        logger.info("Share created", extra={"share_id": share_id, "expires_at": data.get("expiresAt")})
        return share_id

    def fetch(self, share_id: str) -> StoredShare:
        if not share_id:
            raise ShareNotFound("Empty share id")

        response = self._request("GET", params={"id": share_id})
        if response.status_code == 404:
            raise ShareNotFound(f"Share {share_id} not found")
        if response.status_code == 410:
            raise ShareExpired(f"Share {share_id} expired")
        if response.status_code != 200:
            raise self._backend_error(response)

        data = self._json_body(response)
        payload = data.get("payload")
        if not isinstance(payload, str):
            raise BackendError("Share backend response has no payload", status_code=response.status_code)
        try:
            expires_at = parse_timestamp(data.get("expiresAt"))
        except ValueError as e:
            raise BackendError(f"Share backend returned invalid expiresAt: {e}", status_code=response.status_code) from e

        stored = StoredShare(id=share_id, payload=payload, expires_at=expires_at)
        return ensure_not_expired(stored, self.clock())
