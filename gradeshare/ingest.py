from __future__ import annotations
import logging
import re
from typing import Any, List
from bs4 import BeautifulSoup
from .extract import extract_record
from .header_detect import LineKind, classify_first_line
from .models import GradeRecord
from .names import normalize_student_name
from .utils import lenient_float

logger = logging.getLogger(__name__)

MARKUP_START_RE = re.compile(r"^<(?:!doctype\s+html|html|table)\b", re.I)
# =========================

# HTML: строки таблиц, ячейки 0 (имя) и 1 (оценка)
# =========================
TABLE_SECTIONS = ("thead", "tbody", "tfoot")


def _row_section(tr) -> str:
    # ближайшая секция строки; строка прямо в <table> считается телом (как в DOM браузера)
    parent = tr.find_parent([*TABLE_SECTIONS, "table"])
    if parent is None or parent.name == "table":
        return "tbody"
    return parent.name


def _table_rows(soup: BeautifulSoup):
    return [tr for tr in soup.select("table tr") if _row_section(tr) == "tbody"]


def _parse_markup(text: str) -> List[GradeRecord]:
    soup = BeautifulSoup(text, "html.parser")
    grades: List[GradeRecord] = []

    for row in _table_rows(soup):
        cells = row.find_all("td")
        if len(cells) < 2:
            continue

        name = normalize_student_name(cells[0].get_text().strip())
        # нераспознанная оценка -> 0, строку по оценке не отбрасываем
        grade = lenient_float(cells[1].get_text().strip(), default=0.0)

        if name:
            grades.append(GradeRecord(student_name=name, grade=grade))

    return grades
# =========================

# Обычный текст: по строкам, шапка/мусор решается только для первой строки
# =========================
def _parse_plain(text: str) -> List[GradeRecord]:
    lines = [ln.strip() for ln in text.split("\n")]
    lines = [ln for ln in lines if ln]
    if not lines:
        return []

    start = 0
    kind = classify_first_line(lines[0])
    if kind != LineKind.DATA:
        start = 1
        logger.debug("First line skipped", extra={"line_kind": kind.value})

    grades: List[GradeRecord] = []
    for line in lines[start:]:
        rec = extract_record(line)
        if rec is not None:
            grades.append(rec)
    return grades


def is_markup(text: str) -> bool:
    return bool(MARKUP_START_RE.match(text.strip()))


def parse_grades(text: Any) -> List[GradeRecord]:
    """
    Разбор вставленного списка оценок (HTML-таблица или текст).
    Никогда не бросает исключение: при любой ошибке - пустой список
    ("оценки не найдены" - единственное, что может сделать вызывающий код).
    """
    if not isinstance(text, str):
        return []
    try:
        if is_markup(text):
            return _parse_markup(text)
        return _parse_plain(text)
    except Exception:
        logger.warning("Grade parsing failed, returning empty result", exc_info=True)
        return []
