from __future__ import annotations
from typing import Any
from .utils import collapse_ws


def _cap_token(tok: str) -> str:
    head = tok[:1]
    up = head.upper()
    # 'ß'.upper() == 'SS' ломает идемпотентность - такие буквы оставляем как есть
    if len(up) != 1:
        up = head
    return up + tok[1:].lower()

def normalize_student_name(raw: Any) -> str:
    """
    Нормализация имени студента:
    - схлопывание пробелов, обрезка краёв
    - каждое слово: первая буква заглавная, остальные строчные
    Одинаково для одного слова и для ФИО из нескольких слов.
    """
    if raw is None or not isinstance(raw, str):
        return ""
    cleaned = collapse_ws(raw)
    if not cleaned:
        return ""
    return " ".join(_cap_token(p) for p in cleaned.split(" "))
