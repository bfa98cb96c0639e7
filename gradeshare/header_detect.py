from __future__ import annotations
import re
from enum import Enum
from .extract import extract_record
from .utils import norm_text

# Типичные шапки вставленных списков (EN/ES/CA), сверяются с началом строки
HEADER_PATTERNS = [
    re.compile(r"^nom\s+nota"),                # CA/ES: "Nom Nota"
    re.compile(r"^nom\s+qualificaci[oó]"),     # CA
    re.compile(r"^name\s+grade"),
    re.compile(r"^name\s+score"),
    re.compile(r"^student\s+grade"),
    re.compile(r"^student\s+score"),
    re.compile(r"^alumno\s+nota"),             # ES
    re.compile(r"^alumne\s+nota"),             # CA
    re.compile(r"^nombre\s+calificaci[oó]n"),  # ES
    re.compile(r"^apellido\s+nota"),           # ES
]

# Слова, которые не бывают первым словом имени, но бывают первым словом шапки
HEADER_KWS = {
    "nom", "name", "student", "alumno", "alumne", "apellido", "nombre",
    "nota", "grade", "score", "calificación", "qualificació",
}


class LineKind(str, Enum):
    HEADER = "header"
    DATA = "data"
    NOISE = "noise"


def is_header_line(line: str) -> bool:
    t = norm_text(line)
    if not t:
        return False

    if any(p.match(t) for p in HEADER_PATTERNS):
        return True

    # первое слово строки само является словом шапки ("Name:" тоже считаем)
    first = t.split(" ", 1)[0].rstrip(":")
    return first in HEADER_KWS


def looks_like_data_line(line: str) -> bool:
    return extract_record(line) is not None


def classify_first_line(line: str) -> LineKind:
    """
    Решение только для первой строки:
      - шапка -> пропускаем
      - похоже на данные -> оставляем
      - иначе мусор ("N/A", заголовок отчёта и т.п.) -> пропускаем
    Остальные строки всегда пробуем разобрать.
    """
    if is_header_line(line):
        return LineKind.HEADER
    if looks_like_data_line(line):
        return LineKind.DATA
    return LineKind.NOISE
