"""Ошибки share-пайплайна.

Ошибки разбора (ParseFailure) наружу не выходят: parse_grades возвращает пустой список.
"""
from __future__ import annotations


class GradeShareError(Exception):
    """Базовая ошибка пакета."""


class ShareError(GradeShareError):
    """Любая ошибка создания или открытия ссылки."""


class DecodeError(ShareError):
    """Payload/ссылка повреждены: разделитель, base64, сжатие, JSON или схема снимка."""


class AuthenticationError(DecodeError):
    """Тег AES-GCM не сошёлся: неверный ключ/IV или данные изменены. Повторять бессмысленно."""


class InvalidShareLink(DecodeError):
    """Ссылка не содержит id/ключ или ключ неверной длины."""


class ShareNotFound(ShareError):
    """Бэкенд не знает такой id (ссылка удалена или не существовала)."""


class ShareExpired(ShareError):
    """Запись найдена, но срок действия (expiresAt) уже прошёл."""


class BackendError(ShareError):
    """Бэкенд недоступен или вернул ошибку; повтор - только по инициативе пользователя."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
