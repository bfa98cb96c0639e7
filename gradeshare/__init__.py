"""
Этот пакет содержит:
- разбор вставленных списков оценок (текст/HTML)
- статистику по оценкам
- шифрование и сжатие снимка для ссылки
- клиент и бэкенд хранилища ссылок с истечением срока
"""
from .models import GradeRecord, ShareOptions, ShareSnapshot, EncryptedShare, StoredShare
from .ingest import parse_grades
from .share import encode_snapshot, decode_snapshot
from .store import HttpShareStore, ShareStore
from .links import create_share, create_share_async, open_shared_link, build_share_link, parse_share_param
from .stats import compute_stats, grade_histogram

__all__ = [
    "GradeRecord",
    "ShareOptions",
    "ShareSnapshot",
    "EncryptedShare",
    "StoredShare",
    "parse_grades",
    "encode_snapshot",
    "decode_snapshot",
    "HttpShareStore",
    "ShareStore",
    "create_share",
    "create_share_async",
    "open_shared_link",
    "build_share_link",
    "parse_share_param",
    "compute_stats",
    "grade_histogram",
]
