from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable
import numpy as np
import pandas as pd
from .models import GradeRecord, ShareOptions

NORMALIZED_MAX = 10.0
SORT_COLUMNS = ("student_name", "grade", "status")


@dataclass(frozen=True)
class GradeStats:
    count: int = 0
    average: float = 0.0
    median: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    std_dev: float = 0.0
    pass_rate: float = 0.0  # %
    passed: int = 0
    failed: int = 0


def _should_normalize(options: ShareOptions) -> bool:
    mx = float(options.max_possible_grade)
    return bool(options.normalize_grades) and mx not in (NORMALIZED_MAX, 0.0) and math.isfinite(mx)


def records_to_frame(records: Iterable[GradeRecord]) -> pd.DataFrame:
    rows = [{"student_name": r.student_name, "grade": float(r.grade)} for r in records]
    return pd.DataFrame(rows, columns=["student_name", "grade"])


def apply_normalization(df: pd.DataFrame, options: ShareOptions) -> pd.DataFrame:
    # новая таблица; исходная оценка остаётся в original_grade
    out = df.copy()
    out["original_grade"] = out["grade"].astype(float)
    if _should_normalize(options):
        out["grade"] = out["original_grade"] / float(options.max_possible_grade) * NORMALIZED_MAX
    return out


def effective_pass_threshold(options: ShareOptions) -> float:
    if _should_normalize(options):
        return float(options.pass_threshold) / float(options.max_possible_grade) * NORMALIZED_MAX
    return float(options.pass_threshold)


def display_frame(records: Iterable[GradeRecord], options: ShareOptions) -> pd.DataFrame:
    df = apply_normalization(records_to_frame(records), options)
    thr = effective_pass_threshold(options)
    df["passed"] = df["grade"] >= thr
    return df


def compute_stats(records: Iterable[GradeRecord], options: ShareOptions) -> GradeStats:
    df = display_frame(records, options)
    if df.empty:
        return GradeStats()

    g = df["grade"].to_numpy(dtype=float)
    passed = int(df["passed"].sum())

    return GradeStats(
        count=int(len(g)),
        average=float(np.mean(g)),
        median=float(np.median(g)),
        minimum=float(np.min(g)),
        maximum=float(np.max(g)),
        std_dev=float(np.std(g)),  # по генеральной совокупности
        pass_rate=passed / len(g) * 100.0,
        passed=passed,
        failed=int(len(g)) - passed,
    )


def grade_histogram(records: Iterable[GradeRecord], options: ShareOptions) -> pd.DataFrame:
    """
    Корзины по 1 баллу при шкале до 10, иначе по 10.
    Оценки вне шкалы попадают в первую/последнюю корзину.
    """
    df = display_frame(records, options)
    cols = ["range", "count", "is_passing"]
    if df.empty:
        return pd.DataFrame(columns=cols)

    effective_max = NORMALIZED_MAX if options.normalize_grades else float(options.max_possible_grade)
    bin_size = 1 if effective_max <= 10 else 10
    num_bins = max(1, int(math.ceil(effective_max / bin_size)))
    thr = effective_pass_threshold(options)

    idx = np.floor(df["grade"].to_numpy(dtype=float) / bin_size).astype(int)
    idx = np.clip(idx, 0, num_bins - 1)
    counts = np.bincount(idx, minlength=num_bins)

    return pd.DataFrame({
        "range": [f"{i * bin_size}-{(i + 1) * bin_size}" for i in range(num_bins)],
        "count": counts.astype(int),
        "is_passing": [i * bin_size >= thr for i in range(num_bins)],
    }, columns=cols)


def sort_grades(df: pd.DataFrame, column: str = "student_name", ascending: bool = True) -> pd.DataFrame:
    if column not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort column: {column}")

    if column == "student_name":
        key = df["student_name"].str.lower()
        order = key.sort_values(ascending=ascending, kind="stable").index
        return df.loc[order].reset_index(drop=True)

    if column == "grade":
        return df.sort_values("grade", ascending=ascending, kind="stable").reset_index(drop=True)

    # статус (сдал/не сдал), внутри статуса - по оценке
    return df.sort_values(["passed", "grade"], ascending=[ascending, ascending], kind="stable").reset_index(drop=True)


def search_grades(df: pd.DataFrame, query: str) -> pd.DataFrame:
    q = (query or "").strip()
    if not q:
        return df
    mask = df["student_name"].astype(str).str.contains(q, case=False, regex=False, na=False)
    return df[mask].reset_index(drop=True)
