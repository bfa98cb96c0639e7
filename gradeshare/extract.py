from __future__ import annotations
import math
import re
from typing import Callable, Iterator, Optional, Sequence, Tuple
from .models import GradeRecord
from .names import normalize_student_name
from .utils import decimal_comma_to_point, has_letter

Strategy = Callable[[str], Optional[GradeRecord]]
# =========================

# Стратегии разбора одной строки: line -> GradeRecord | None
# =========================
STRICT_GRADE_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")

# flexible: имя, разделитель (таб , ; : | - с пробелами вокруг, либо просто пробелы), число в конце строки.
# разбор идёт с конца строки за один проход
FLEX_SEPARATORS = "\t,;:|-"
DECIMAL_MARKS = ".,"


def _digits_start(s: str, end: int) -> int:
    i = end
    while i > 0 and s[i - 1].isdecimal():
        i -= 1
    return i


def _trailing_number_starts(s: str) -> Iterator[int]:
    # сначала самое длинное число ("7,5"), затем только последняя группа цифр ("5")
    int_start = _digits_start(s, len(s))
    if int_start == len(s):
        return
    mark = int_start - 1
    if mark > 0 and s[mark] in DECIMAL_MARKS:
        start = _digits_start(s, mark)
        if start < mark:
            yield start
    yield int_start


def _name_before_separator(prefix: str) -> Optional[str]:
    core = prefix.rstrip()
    if core and core[-1] in FLEX_SEPARATORS:
        name = core[:-1].rstrip()
        if name:
            return name
    # только пробелы между именем и числом
    if core and len(core) < len(prefix):
        return core
    return None


def split_trailing_grade(line: str) -> Optional[Tuple[str, str]]:
    """
    "Имя<разделитель>число" -> (имя, число) либо None.
    Имя берётся самым коротким из возможных, число - самым длинным.
    """
    s = line.strip()
    for start in _trailing_number_starts(s):
        name = _name_before_separator(s[:start])
        if name is not None:
            return name, s[start:]
    return None


def _finite_float(txt: str) -> Optional[float]:
    try:
        v = float(txt)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def strict_tab_strategy(line: str) -> Optional[GradeRecord]:
    # "Имя<TAB>Оценка[<TAB>...]" - лишние колонки игнорируются
    parts = line.split("\t")
    if len(parts) < 2:
        return None

    name_part = parts[0].strip()
    grade_part = decimal_comma_to_point(parts[1].strip())

    if len(name_part) < 2 or not has_letter(name_part):
        return None
    if not STRICT_GRADE_RE.match(grade_part):
        return None

    grade = _finite_float(grade_part)
    if grade is None:
        return None

    name = normalize_student_name(name_part)
    if not name:
        return None
    return GradeRecord(student_name=name, grade=grade)


def flexible_strategy(line: str) -> Optional[GradeRecord]:
    # "Ana Pérez - 8.5", "Luis Gómez: 6", "John Smith 7,5"
    split = split_trailing_grade(line)
    if split is None:
        return None

    raw_name, grade_txt = split
    if not has_letter(raw_name):
        return None

    grade = _finite_float(decimal_comma_to_point(grade_txt))
    if grade is None:
        return None

    name = normalize_student_name(raw_name)
    if not name:
        return None
    return GradeRecord(student_name=name, grade=grade)


# порядок важен: первая сработавшая стратегия побеждает
LINE_STRATEGIES: Tuple[Strategy, ...] = (strict_tab_strategy, flexible_strategy)


def extract_record(line: str, strategies: Sequence[Strategy] = LINE_STRATEGIES) -> Optional[GradeRecord]:
    for strategy in strategies:
        rec = strategy(line)
        if rec is not None:
            return rec
    return None
