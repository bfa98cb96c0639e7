from __future__ import annotations
import os
import re
import json
import math
from pathlib import Path
from typing import Any, Optional

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_PUBLIC_URL = "http://localhost:8501/"
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_SHARE_TTL = 60 * 60 * 24 * 7


def load_json(path: Path, default: Any):
    # нет файла -> default; битый файл -> ValueError (молча затирать его нельзя)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default

def save_json(path: Path, obj: Any):
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)

_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP варианты
_WS_RE = re.compile(r"\s+")


def norm_text(s: Any) -> str:
    """
    Нормализация текста для сравнения с ключевыми словами:
    - BOM/неразрывные пробелы
    - lower
    - схлопывание пробелов
    """
    if s is None:
        return ""

    s = str(s)
    # частые "невидимые" символы при копировании из таблиц
    s = s.replace("\ufeff", "")
    s = _NBSP_RE.sub(" ", s)
    s = s.lower()
    s = _WS_RE.sub(" ", s).strip()
    return s

def collapse_ws(s: str) -> str:
    # схлопнуть пробелы без изменения регистра
    return _WS_RE.sub(" ", _NBSP_RE.sub(" ", s or "")).strip()

def has_letter(s: str) -> bool:
    return any(ch.isalpha() for ch in s or "")

_LEADING_NUM_RE = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def decimal_comma_to_point(s: str) -> str:
    # запятая всегда десятичный разделитель (разделители тысяч не поддерживаем)
    return (s or "").replace(",", ".", 1)

def lenient_float(s: Any, default: float = 0.0) -> float:
    # как parseFloat: берём числовой префикс, мусор после него игнорируем
    txt = decimal_comma_to_point(str(s if s is not None else "")).strip()
    if not txt:
        return default
    try:
        v = float(txt)
    except ValueError:
        m = _LEADING_NUM_RE.match(txt)
        if not m:
            return default
        v = float(m.group(0))
    return v if math.isfinite(v) else default
# =========================

# Настройки (переменные окружения читаются при каждом вызове)
# =========================
def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default

def share_api_url() -> str:
    return os.environ.get("GRADESHARE_API_URL", DEFAULT_API_URL).rstrip("/")

def public_base_url() -> str:
    return os.environ.get("GRADESHARE_PUBLIC_URL", DEFAULT_PUBLIC_URL)

def http_timeout() -> float:
    return _env_float("GRADESHARE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)

def default_share_ttl() -> int:
    return int(_env_float("GRADESHARE_SHARE_TTL", DEFAULT_SHARE_TTL))

def user_data_dir() -> Path:
    explicit = os.environ.get("GRADESHARE_DATA_DIR")
    if explicit:
        return Path(explicit)
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "GradeShare" / "data"
    return DEFAULT_DATA_DIR  # fallback

def shares_path(data_dir: Optional[Path] = None) -> Path:
    d = data_dir or user_data_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = d / "shares.json"
    if not p.exists():
        save_json(p, {})
    return p
