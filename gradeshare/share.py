from __future__ import annotations
import json
import math
from typing import Any, Dict, List
from .cipher import decrypt, encrypt
from .codec import b64url_decode, b64url_encode, compress, decompress
from .errors import DecodeError
from .models import EncryptedShare, GradeRecord, ShareOptions, ShareSnapshot

SCHEMA_VERSION = 1
PAYLOAD_SEPARATOR = ":"  # не входит в алфавит base64url

# wire-имя -> (поле ShareOptions, допустимые типы)
_OPTION_FIELDS = {
    "maxPossibleGrade": ("max_possible_grade", (int, float)),
    "passThreshold": ("pass_threshold", (int, float)),
    "normalizeGrades": ("normalize_grades", (bool,)),
}
# =========================

# Снимок <-> JSON (строгая схема, версия v)
# =========================
def snapshot_to_dict(snapshot: ShareSnapshot) -> Dict[str, Any]:
    opts = snapshot.options
    return {
        "v": SCHEMA_VERSION,
        "grades": [{"studentName": g.student_name, "grade": g.grade} for g in snapshot.grades],
        "options": {
            "maxPossibleGrade": opts.max_possible_grade,
            "passThreshold": opts.pass_threshold,
            "normalizeGrades": opts.normalize_grades,
        },
    }

def serialize_snapshot(snapshot: ShareSnapshot) -> bytes:
    # детерминированно: сортировка ключей, компактные разделители
    obj = snapshot_to_dict(snapshot)
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def _is_number(v: Any) -> bool:
    # bool - подкласс int, но оценкой не является
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        # целое из JSON, не помещающееся во float
        return False


def _grade_from_dict(item: Any, idx: int) -> GradeRecord:
    if not isinstance(item, dict):
        raise DecodeError(f"grades[{idx}] is not an object")
    name = item.get("studentName")
    grade = item.get("grade")
    if not isinstance(name, str) or not name:
        raise DecodeError(f"grades[{idx}].studentName must be a non-empty string")
    if not _is_number(grade):
        raise DecodeError(f"grades[{idx}].grade must be a finite number")
    return GradeRecord(student_name=name, grade=float(grade))


def _options_from_dict(raw: Any) -> ShareOptions:
    # отсутствие options (или отдельного поля) - единственный случай, когда берутся умолчания
    if raw is None:
        return ShareOptions()
    if not isinstance(raw, dict):
        raise DecodeError("options must be an object")

    kwargs: Dict[str, Any] = {}
    for wire_name, (attr, types) in _OPTION_FIELDS.items():
        if wire_name not in raw:
            continue
        v = raw[wire_name]
        if types == (bool,):
            if not isinstance(v, bool):
                raise DecodeError(f"options.{wire_name} must be a boolean")
            kwargs[attr] = v
        else:
            if not _is_number(v):
                raise DecodeError(f"options.{wire_name} must be a finite number")
            kwargs[attr] = float(v)
    return ShareOptions(**kwargs)


def snapshot_from_dict(obj: Any) -> ShareSnapshot:
    if not isinstance(obj, dict):
        raise DecodeError("Snapshot must be a JSON object")

    version = obj.get("v", SCHEMA_VERSION)
    if version != SCHEMA_VERSION or isinstance(version, bool):
        raise DecodeError(f"Unsupported snapshot version: {version!r}")

    if "grades" not in obj:
        raise DecodeError("Snapshot has no grades field")
    raw_grades = obj["grades"]
    if not isinstance(raw_grades, list):
        raise DecodeError("Snapshot grades must be a list")

    grades: List[GradeRecord] = [_grade_from_dict(item, i) for i, item in enumerate(raw_grades)]
    return ShareSnapshot(grades=tuple(grades), options=_options_from_dict(obj.get("options")))

def deserialize_snapshot(data: bytes) -> ShareSnapshot:
    # слишком глубокая вложенность массивов -> RecursionError внутри json
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise DecodeError(f"Snapshot is not valid JSON: {e}") from e
    return snapshot_from_dict(obj)
# =========================

# Шифрованный снимок: JSON -> zlib -> AES-GCM -> "iv:ct"
# =========================
def encode_snapshot(snapshot: ShareSnapshot) -> EncryptedShare:
    """
    Возвращает payload (в хранилище) и ключ (только в ссылку).
    """
    packed = compress(serialize_snapshot(snapshot))
    enc = encrypt(packed)
    payload = f"{b64url_encode(enc.iv)}{PAYLOAD_SEPARATOR}{b64url_encode(enc.ciphertext)}"
    return EncryptedShare(payload=payload, key=enc.key)


def decode_snapshot(payload: str, key: bytes) -> ShareSnapshot:
    """
    Обратное к encode_snapshot.
    Raises:
        AuthenticationError: неверный ключ или изменённые данные
        DecodeError: любое другое повреждение payload/снимка
    """
    if not isinstance(payload, str) or PAYLOAD_SEPARATOR not in payload:
        raise DecodeError("Invalid payload format: separator missing")

    iv_b64, ct_b64 = payload.split(PAYLOAD_SEPARATOR, 1)
    if not iv_b64 or not ct_b64:
        raise DecodeError("Invalid payload format: empty segment")

    iv = b64url_decode(iv_b64)
    ct = b64url_decode(ct_b64)
    packed = decrypt(ct, iv, key)
    return deserialize_snapshot(decompress(packed))
