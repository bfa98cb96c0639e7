from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple


@dataclass(frozen=True)
class GradeRecord:
    # создаётся только парсером; нормализация 0..10 строит новые данные, grade не меняется
    student_name: str
    grade: float


@dataclass(frozen=True)
class ShareOptions:
    """Параметры отображения, которые путешествуют вместе с оценками."""

    max_possible_grade: float = 10.0
    pass_threshold: float = 5.0
    normalize_grades: bool = False


@dataclass(frozen=True)
class ShareSnapshot:
    grades: Tuple[GradeRecord, ...] = ()
    options: ShareOptions = field(default_factory=ShareOptions)

    def __post_init__(self):
        # список -> tuple, чтобы снимок был неизменяемым и сравнивался по значению
        if not isinstance(self.grades, tuple):
            object.__setattr__(self, "grades", tuple(self.grades))


@dataclass(frozen=True)
class EncryptedShare:
    """
    payload - base64url(iv) + ":" + base64url(ciphertext), уходит в хранилище.
    key - сырой ключ AES, только в ссылку пользователю, в хранилище никогда.
    """

    payload: str
    key: bytes = field(repr=False)

    @property
    def key_hex(self) -> str:
        return self.key.hex()


@dataclass(frozen=True)
class StoredShare:
    id: str
    payload: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
